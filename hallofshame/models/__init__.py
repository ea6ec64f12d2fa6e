"""
Hall of Shame data models.
"""

from .base import UNTITLED, FrozenModel, coerce_int, decode_ledger_string
from .blob import (
    PHASE_ORDER,
    BlobFlowState,
    BlobPhase,
    CertifiedBlob,
    RegistrationReceipt,
    UploadAck,
)
from .feed import ContentStatus, DiscoveryOutcome, DiscoveryResult, FeedEntry, FeedResult
from .ledger import (
    CallArg,
    LedgerTransaction,
    MoveCall,
    ObjectArg,
    PureArg,
    TransactionResult,
    TransactionStatus,
)
from .post import MAX_IMAGES, MAX_TITLE_LENGTH, PostContent, PostRecord, feed_sort_key

__all__ = [
    # Base
    "FrozenModel",
    "UNTITLED",
    "coerce_int",
    "decode_ledger_string",
    # Posts
    "PostContent",
    "PostRecord",
    "MAX_TITLE_LENGTH",
    "MAX_IMAGES",
    "feed_sort_key",
    # Blob flow
    "BlobPhase",
    "PHASE_ORDER",
    "BlobFlowState",
    "RegistrationReceipt",
    "UploadAck",
    "CertifiedBlob",
    # Ledger
    "CallArg",
    "ObjectArg",
    "PureArg",
    "MoveCall",
    "LedgerTransaction",
    "TransactionResult",
    "TransactionStatus",
    # Feed
    "ContentStatus",
    "DiscoveryOutcome",
    "DiscoveryResult",
    "FeedEntry",
    "FeedResult",
]
