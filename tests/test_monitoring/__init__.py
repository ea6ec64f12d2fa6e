"""
Tests for structured logging.
"""
