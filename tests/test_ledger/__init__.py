"""
Tests for the ledger binder, record parsing and the Sui client.
"""
