"""
Tests for the blob upload protocol and publish service.
"""
