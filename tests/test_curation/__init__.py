"""
Tests for upvote curation.
"""
