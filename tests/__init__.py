"""
Tests for Hall of Shame.
"""
