"""
Curation Engine

Upvotes are the only moderation: each confirmed upvote adds one epoch to
the post's blob storage. After confirmation the caller's copy of the
record is bumped tentatively, then reconciled against a fresh ledger read
in which the ledger always wins.
"""

import structlog

from ..errors import LedgerError, PreconditionError, TransportError
from ..ledger.binder import EPOCHS_PER_UPVOTE, LedgerBinder
from ..ledger.records import RecordReader
from ..models import FrozenModel, PostRecord

logger = structlog.get_logger(__name__)


def epochs_owed(upvotes: int = 1) -> int:
    """Storage epochs a number of upvotes extends a blob by."""
    if upvotes < 0:
        raise ValueError("upvotes must be non-negative")
    return upvotes * EPOCHS_PER_UPVOTE


def apply_tentative_upvote(record: PostRecord) -> PostRecord:
    """The record as it should look once one upvote lands."""
    return record.model_copy(update={"upvote_count": record.upvote_count + 1})


def reconcile_record(tentative: PostRecord, authoritative: PostRecord | None) -> PostRecord:
    """
    Merge a tentative local record with a fresh ledger read.

    The ledger read wins whenever there is one, including when it is
    behind the tentative count. Without one, the tentative record stands.
    """
    if authoritative is None:
        return tentative
    if authoritative.id != tentative.id:
        raise ValueError(f"Cannot reconcile record {tentative.id} with {authoritative.id}")
    return authoritative


class UpvoteOutcome(FrozenModel):
    """Result of an upvote: the record to display and how it was derived."""

    record: PostRecord
    tentative: PostRecord
    digest: str
    reconciled: bool


class CurationEngine:
    """Upvotes post records."""

    def __init__(self, binder: LedgerBinder, records: RecordReader):
        self._binder = binder
        self._records = records

    async def upvote(self, record: PostRecord, actor: str) -> UpvoteOutcome:
        """
        Upvote a record, extending its blob's lifespan by one epoch.

        Raises:
            PreconditionError: If the record has no storage handle; no
                ledger call is made
            LedgerError: If the upvote transaction is rejected
            TransactionPendingError: If the upvote was submitted but never
                confirmed; it must not be submitted again
        """
        if not record.can_extend:
            raise PreconditionError(
                f"Record {record.id} has no storage handle and cannot be upvoted"
            )

        result = await self._binder.extend_lifespan(
            record.id, record.storage_handle, epochs_owed(1), actor
        )
        tentative = apply_tentative_upvote(record)

        try:
            authoritative = await self._records.get_record(record.id)
        except (TransportError, LedgerError) as e:
            logger.warning("upvote_refetch_failed", record_id=record.id, error=str(e))
            authoritative = None

        reconciled = reconcile_record(tentative, authoritative)
        logger.info(
            "record_upvoted",
            record_id=record.id,
            upvote_count=reconciled.upvote_count,
            reconciled=authoritative is not None,
            digest=result.digest,
        )
        return UpvoteOutcome(
            record=reconciled,
            tentative=tentative,
            digest=result.digest,
            reconciled=authoritative is not None,
        )
