"""
Tests for feed assembly and display.
"""
