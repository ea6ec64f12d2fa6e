"""
Storage network clients and content reads.
"""

from .base_client import BaseStorageNetwork
from .fetcher import ContentFetcher
from .walrus_client import WalrusStorageNetwork

__all__ = [
    "BaseStorageNetwork",
    "WalrusStorageNetwork",
    "ContentFetcher",
]
