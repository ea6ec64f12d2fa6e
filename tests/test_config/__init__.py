"""
Tests for configuration.
"""
