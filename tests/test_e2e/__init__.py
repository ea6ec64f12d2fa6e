"""
Tests for end-to-end publish, upvote and read scenarios.
"""
