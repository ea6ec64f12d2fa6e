"""
Tests for models.
"""
