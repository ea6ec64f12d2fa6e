"""
Ledger Binder

Binds certified blobs to post records on the ledger. Two operations exist:
creating a record that references a certified blob, and extending the
lifespan of an existing record's blob through an upvote. Each is a single
ledger transaction, so the ledger applies it entirely or not at all.
"""

import structlog

from ..config import Settings
from ..errors import LedgerError, PreconditionError, TransactionPendingError, ValidationError
from ..models import (
    MAX_TITLE_LENGTH,
    BlobFlowState,
    BlobPhase,
    LedgerTransaction,
    TransactionResult,
)
from .base_client import BaseLedgerClient
from .transactions import (
    PUBLISH_EVENT_SUFFIX,
    RECORD_TYPE_SUFFIX,
    build_publish_transaction,
    build_upvote_transaction,
)

logger = structlog.get_logger(__name__)

# Fixed by the upvote entry point
EPOCHS_PER_UPVOTE = 1

# Publish-event fields that may carry the new record's id
RECORD_ID_EVENT_FIELDS = ("shame_id", "record_id", "object_id", "id")


def record_id_from_event(parsed: dict) -> str | None:
    """Pull a record id out of a publish event's parsed JSON."""
    for name in RECORD_ID_EVENT_FIELDS:
        value = parsed.get(name)
        if isinstance(value, str) and value:
            return value
    return None


def _created_record_id(result: TransactionResult) -> str | None:
    """Find the record a publish transaction created."""
    record_id = result.created_of_type(RECORD_TYPE_SUFFIX)
    if record_id:
        return record_id

    for event in result.events:
        if str(event.get("type", "")).endswith(PUBLISH_EVENT_SUFFIX):
            record_id = record_id_from_event(event.get("parsedJson") or {})
            if record_id:
                return record_id
    return None


class LedgerBinder:
    """
    Builds and submits the publish and upvote transactions.

    Example:
        ```python
        binder = LedgerBinder(ledger)
        record_id = await binder.create_record(
            title="Acme Corp Overcharges",
            content_address=blob.content_address,
            storage_handle=blob.storage_handle,
            author=wallet.address,
        )
        ```
    """

    def __init__(self, ledger: BaseLedgerClient, settings: Settings | None = None):
        self._ledger = ledger
        self.settings = settings or ledger.settings

    async def _submit(self, transaction: LedgerTransaction) -> TransactionResult:
        """Execute once; a lost confirmation is settled by digest, never re-signed."""
        try:
            return await self._ledger.execute(transaction)
        except TransactionPendingError as e:
            logger.warning(
                "transaction_unconfirmed",
                digest=e.digest,
                calls=[call.function for call in transaction.calls],
            )
            return await self.confirm(e.digest)

    async def confirm(self, digest: str) -> TransactionResult:
        """
        Wait for a submitted transaction and check that it succeeded.

        Raises:
            TransactionPendingError: If it is still unconfirmed
            LedgerError: If the ledger rejected it
        """
        result = await self._ledger.wait_for_transaction(digest)
        if not result.succeeded:
            raise LedgerError(result.error or f"Transaction {digest} failed", digest=digest)
        return result

    async def create_record(
        self,
        title: str,
        content_address: str,
        storage_handle: str,
        author: str,
    ) -> str:
        """
        Create a post record referencing a certified blob.

        Args:
            title: Post title (1-200 characters after trimming)
            content_address: Blob id issued at certification
            storage_handle: Blob object id issued at certification
            author: Account that signs and owns the record

        Returns:
            The new record's ledger id

        Raises:
            ValidationError: If the title is empty or too long
            PreconditionError: If the blob linkage is missing
            LedgerError: If the ledger rejects the transaction
            TransactionPendingError: If the publish was submitted but is still
                unconfirmed; settle it with `resolve_record(e.digest)`
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title must not be empty")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title exceeds {MAX_TITLE_LENGTH} characters")
        if not content_address or not storage_handle:
            raise PreconditionError("A certified blob is required before creating a record")

        transaction = build_publish_transaction(
            self.settings, title, content_address, storage_handle, author
        )
        result = await self._submit(transaction)
        record_id = self._record_id(result)

        logger.info(
            "record_created",
            record_id=record_id,
            content_address=content_address,
            digest=result.digest,
        )
        return record_id

    async def resolve_record(self, digest: str) -> str:
        """
        Record id created by an already-submitted publish transaction.

        Raises:
            TransactionPendingError: If it is still unconfirmed
            LedgerError: If it failed or created no record
        """
        record_id = self._record_id(await self.confirm(digest))
        logger.info("record_resolved", record_id=record_id, digest=digest)
        return record_id

    def _record_id(self, result: TransactionResult) -> str:
        record_id = _created_record_id(result)
        if not record_id:
            raise LedgerError(
                "Publish transaction confirmed but created no post record",
                digest=result.digest,
            )
        return record_id

    async def create_record_for(self, state: BlobFlowState, title: str) -> str:
        """
        Create a record for a finished blob flow.

        Raises:
            PreconditionError: If the flow has not reached CERTIFIED
        """
        if state.phase != BlobPhase.CERTIFIED or state.certified is None:
            raise PreconditionError(
                f"Blob flow {state.flow_id} is {state.phase.value}, not certified"
            )
        return await self.create_record(
            title,
            state.certified.content_address,
            state.certified.storage_handle,
            state.owner,
        )

    async def extend_lifespan(
        self,
        record_id: str,
        storage_handle: str | None,
        epochs_to_add: int,
        author: str,
    ) -> TransactionResult:
        """
        Upvote a record, extending its blob's storage.

        Raises:
            ValidationError: If `epochs_to_add` is not the contract's fixed value
            PreconditionError: If the storage handle is absent or unknown
            LedgerError: If the ledger rejects the transaction
        """
        if not storage_handle:
            raise PreconditionError(
                f"Record {record_id} has no storage handle; its lifespan cannot be extended"
            )
        if epochs_to_add != EPOCHS_PER_UPVOTE:
            raise ValidationError(
                f"Each upvote extends storage by exactly {EPOCHS_PER_UPVOTE} epoch"
            )
        if await self._ledger.get_object(storage_handle) is None:
            raise PreconditionError(f"Storage handle {storage_handle} does not exist")

        transaction = build_upvote_transaction(
            self.settings, record_id, storage_handle, epochs_to_add, author
        )
        result = await self._submit(transaction)

        logger.info(
            "lifespan_extended",
            record_id=record_id,
            storage_handle=storage_handle,
            epochs=epochs_to_add,
            digest=result.digest,
        )
        return result
