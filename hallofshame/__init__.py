"""
Hall of Shame

Immutable posts whose content lives on Walrus epoch-expiring storage and
whose authoritative record lives on the Sui ledger. Upvotes extend a post's
storage lifetime.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
