"""
Tests for the Walrus client and content fetcher.
"""
