"""
Publish Service

Orchestrates a full publish: encode the content, run the blob upload
protocol, then bind the certified blob to a new post record. Unfinished
flows are kept per content digest for the life of the service, so
re-publishing identical content resumes instead of starting over.
"""

from collections.abc import Sequence

import structlog
from pydantic import Field

from ..config import Settings
from ..encoding import content_digest, encode_content
from ..errors import LedgerError, TransactionPendingError
from ..ledger.binder import LedgerBinder
from ..models import BlobFlowState, BlobPhase, FrozenModel
from ..monitoring.logging import bind_context, unbind_context
from ..storage.base_client import BaseStorageNetwork
from .protocol import BlobUploadProtocol

logger = structlog.get_logger(__name__)

# Unfinished flows kept for resumption; the oldest is dropped beyond this
MAX_PENDING_FLOWS = 32


class PublishReceipt(FrozenModel):
    """Outcome of a successful publish."""

    record_id: str
    content_address: str
    storage_handle: str
    flow_id: str
    digest: str = Field(description="SHA-256 of the uploaded content")
    epochs: int


class PublishService:
    """
    Publishes posts end to end.

    Args:
        storage: Storage network for the blob flow
        binder: Ledger binder used to create the post record
        settings: Optional settings override
    """

    def __init__(
        self,
        storage: BaseStorageNetwork,
        binder: LedgerBinder,
        settings: Settings | None = None,
    ):
        self._storage = storage
        self._binder = binder
        self.settings = settings or storage.settings
        self._flows: dict[str, BlobFlowState] = {}

    def pending_flow(self, digest: str) -> BlobFlowState | None:
        """The unfinished flow for content with this digest, if any."""
        return self._flows.get(digest)

    def _protocol_for(
        self,
        payload: bytes,
        author: str,
        state: BlobFlowState | None,
    ) -> BlobUploadProtocol:
        digest = content_digest(payload)
        state = state or self._flows.get(digest)

        if state is not None and (state.digest != digest or state.owner != author):
            reason = "content changed" if state.digest != digest else "author changed"
            logger.info("publish_state_discarded", flow_id=state.flow_id, reason=reason)
            state = None

        if state is None:
            return BlobUploadProtocol.start(self._storage, payload, author, self.settings)

        protocol = BlobUploadProtocol(self._storage, state, self.settings)
        if state.phase not in (BlobPhase.INIT, BlobPhase.CERTIFIED) and not state.pending_digest:
            # A half-finished attempt's registration may be stale or unpaid
            protocol.restart()
        logger.info("publish_resumed", flow_id=state.flow_id, phase=protocol.phase.value)
        return protocol

    async def publish(
        self,
        title: str,
        body: str,
        author: str,
        images: Sequence[str] | None = None,
        state: BlobFlowState | None = None,
    ) -> PublishReceipt:
        """
        Publish a post.

        Args:
            title: Post title
            body: Post body
            author: Account that signs every step and owns the record
            images: Up to four image payloads
            state: A flow from an earlier abandoned attempt to resume

        Raises:
            ValidationError: If the content is malformed
            LedgerError / StorageError / TransportError: If a step fails;
                the flow is kept so a retry resumes it
            TransactionPendingError: If a signed step was submitted but not
                confirmed; a retry settles it by digest instead of signing again
        """
        payload = encode_content(title, body, images)
        protocol = self._protocol_for(payload, author, state)
        digest = protocol.state.digest

        bind_context(flow_id=protocol.state.flow_id)
        try:
            try:
                certified = await protocol.run()
                record_id = await self._bind_record(protocol, title)
            finally:
                self._keep_flow(protocol.state)

            self._flows.pop(digest, None)
            logger.info("post_published", record_id=record_id, content_address=certified.content_address)
            return PublishReceipt(
                record_id=record_id,
                content_address=certified.content_address,
                storage_handle=certified.storage_handle,
                flow_id=protocol.state.flow_id,
                digest=digest,
                epochs=protocol.state.epochs,
            )
        finally:
            unbind_context("flow_id")

    async def _bind_record(self, protocol: BlobUploadProtocol, title: str) -> str:
        """Create the record, or settle a publish submitted by an earlier attempt."""
        digest = protocol.state.pending_digest
        try:
            if digest:
                return await self._binder.resolve_record(digest)
            return await self._binder.create_record_for(protocol.state, title)
        except TransactionPendingError as e:
            protocol.mark_pending(e.digest)
            raise
        except LedgerError:
            # Rejected on the ledger, so a later attempt may submit again
            protocol.mark_pending(None)
            raise

    def _keep_flow(self, state: BlobFlowState) -> None:
        self._flows.pop(state.digest, None)
        self._flows[state.digest] = state
        while len(self._flows) > MAX_PENDING_FLOWS:
            dropped = self._flows.pop(next(iter(self._flows)))
            logger.info("publish_state_dropped", flow_id=dropped.flow_id, phase=dropped.phase.value)
