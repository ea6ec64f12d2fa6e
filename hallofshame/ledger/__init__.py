"""
Ledger integration: clients, transaction builders, record reads and the
binder that ties certified blobs to post records.
"""

from .base_client import BaseLedgerClient
from .binder import EPOCHS_PER_UPVOTE, LedgerBinder, record_id_from_event
from .records import RecordReader, parse_post_record
from .signer import Signer
from .sui_client import SuiLedgerClient

__all__ = [
    "BaseLedgerClient",
    "SuiLedgerClient",
    "Signer",
    "LedgerBinder",
    "EPOCHS_PER_UPVOTE",
    "record_id_from_event",
    "RecordReader",
    "parse_post_record",
]
