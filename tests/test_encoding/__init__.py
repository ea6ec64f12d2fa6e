"""
Tests for canonical content encoding.
"""
