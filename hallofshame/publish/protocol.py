"""
Blob Upload Protocol

Drives one publish attempt's blob through encode -> register -> upload ->
certify. The flow's state is a BlobFlowState value held by the protocol
and replaced on every transition, so a flow abandoned between the two
signing steps can be handed back later and resumed from its data alone.

Ordering is enforced, not assumed:
- upload requires a register confirmation
- certify requires an upload acknowledged against that same confirmation
A failed transition records the error and leaves the phase unchanged.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import Settings, get_settings
from ..encoding import content_digest
from ..errors import (
    LedgerError,
    ProtocolStateError,
    RegistrationExpiredError,
    StorageError,
    TransactionPendingError,
    TransportError,
    ValidationError,
)
from ..models import BlobFlowState, BlobPhase, CertifiedBlob
from ..storage.base_client import BaseStorageNetwork

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Restarts from ENCODED allowed when a registration expires mid-flow
DEFAULT_MAX_RESTARTS = 1


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "blob_step_retrying",
        attempt=retry_state.attempt_number,
        error=str(exception) if exception else None,
    )


class BlobUploadProtocol:
    """
    State machine for one blob upload.

    Example:
        ```python
        protocol = BlobUploadProtocol.start(storage, payload, owner=wallet.address)
        certified = await protocol.run()
        record_id = await binder.create_record_for(protocol.state, title)
        ```
    """

    def __init__(
        self,
        storage: BaseStorageNetwork,
        state: BlobFlowState,
        settings: Settings | None = None,
    ):
        self._storage = storage
        self._state = state
        self.settings = settings or storage.settings

    @classmethod
    def start(
        cls,
        storage: BaseStorageNetwork,
        payload: bytes,
        owner: str,
        settings: Settings | None = None,
    ) -> "BlobUploadProtocol":
        """Begin a new flow holding `payload` in INIT."""
        state = BlobFlowState(payload=payload, digest=content_digest(payload), owner=owner)
        return cls(storage, state, settings)

    @property
    def state(self) -> BlobFlowState:
        return self._state

    @property
    def phase(self) -> BlobPhase:
        return self._state.phase

    def _require_phase(self, operation: str, phase: BlobPhase) -> None:
        if self._state.phase != phase:
            raise ProtocolStateError(operation, self._state.phase.value)

    def _record_failure(self, operation: str, error: Exception) -> None:
        self._state = self._state.with_error(str(error))
        logger.warning(
            "blob_step_failed",
            flow_id=self._state.flow_id,
            operation=operation,
            phase=self._state.phase.value,
            error=str(error),
        )

    def _retrying(self, settling: bool = False) -> AsyncRetrying:
        # A submitted transaction is only ever re-polled, never re-signed
        retry = retry_if_exception_type(TransportError)
        if not settling:
            retry = retry & retry_if_not_exception_type(TransactionPendingError)
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.upload_retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self.settings.retry_backoff_min_seconds,
                max=self.settings.retry_backoff_max_seconds,
            ),
            retry=retry,
            before_sleep=_log_retry,
            reraise=True,
        )

    async def _with_retry(self, step: Callable[[], Awaitable[T]], settling: bool = False) -> T:
        async for attempt in self._retrying(settling):
            with attempt:
                return await step()
        raise AssertionError("unreachable")  # reraise=True always raises first

    # ==================== Transitions ====================

    def encode(self) -> BlobFlowState:
        """
        INIT -> ENCODED: size the payload and fix the epoch request.

        Raises:
            ValidationError: If the payload is empty or does not match its digest
        """
        self._require_phase("encode", BlobPhase.INIT)

        payload = self._state.payload
        if not payload:
            raise ValidationError("Cannot upload an empty payload")
        if content_digest(payload) != self._state.digest:
            raise ValidationError("Payload does not match its recorded digest")

        self._state = self._state.advance(
            BlobPhase.ENCODED,
            size=len(payload),
            epochs=self.settings.requested_epochs,
        )
        logger.debug(
            "blob_encoded",
            flow_id=self._state.flow_id,
            size=self._state.size,
            epochs=self._state.epochs,
        )
        return self._state

    async def register(self) -> BlobFlowState:
        """
        ENCODED -> REGISTERED: first user signature, reserving storage.

        Never retried automatically; a retry needs a fresh signature.
        """
        self._require_phase("register", BlobPhase.ENCODED)
        state = self._state

        try:
            receipt = await self._storage.register(
                size=state.size,
                epochs=state.epochs,
                digest=state.digest,
                owner=state.owner,
                deletable=False,
            )
            if not receipt.confirmation_id:
                raise StorageError("Registration returned no confirmation id")
        except Exception as e:
            self._record_failure("register", e)
            raise

        self._state = state.advance(BlobPhase.REGISTERED, registration=receipt)
        return self._state

    async def upload(self) -> BlobFlowState:
        """
        REGISTERED -> UPLOADED: push the bytes against the registration.

        Transport failures are retried with backoff; the write is
        idempotent per confirmation id.
        """
        self._require_phase("upload", BlobPhase.REGISTERED)
        state = self._state
        registration = state.registration
        if registration is None or not registration.confirmation_id:
            raise ProtocolStateError("upload without a register confirmation", state.phase.value)

        try:
            ack = await self._with_retry(
                lambda: self._storage.upload(registration, state.payload)
            )
            if ack.confirmation_id != registration.confirmation_id:
                raise StorageError(
                    f"Upload acknowledged {ack.confirmation_id}, "
                    f"expected {registration.confirmation_id}"
                )
        except Exception as e:
            self._record_failure("upload", e)
            raise

        self._state = state.advance(BlobPhase.UPLOADED, upload=ack)
        return self._state

    async def certify(self) -> BlobFlowState:
        """UPLOADED -> CERTIFIED: second user signature, issuing the content address."""
        self._require_phase("certify", BlobPhase.UPLOADED)
        state = self._state
        registration, ack = state.registration, state.upload
        if (
            registration is None
            or ack is None
            or ack.confirmation_id != registration.confirmation_id
        ):
            raise ProtocolStateError("certify without a matching upload", state.phase.value)

        try:
            if state.pending_digest:
                certified = await self._settle_certify(state.pending_digest)
            else:
                try:
                    certified = await self._with_retry(
                        lambda: self._storage.certify(registration, ack, state.owner)
                    )
                except TransactionPendingError as e:
                    self.mark_pending(e.digest)
                    certified = await self._settle_certify(e.digest)
        except Exception as e:
            self._record_failure("certify", e)
            raise

        self._state = state.advance(BlobPhase.CERTIFIED, certified=certified)
        logger.info(
            "blob_flow_certified",
            flow_id=self._state.flow_id,
            content_address=certified.content_address,
            storage_handle=certified.storage_handle,
        )
        return self._state

    async def _settle_certify(self, digest: str) -> CertifiedBlob:
        """Resolve a submitted certify by its digest instead of signing it again."""
        state = self._state
        logger.warning("blob_certify_unconfirmed", flow_id=state.flow_id, digest=digest)
        try:
            return await self._with_retry(
                lambda: self._storage.resolve_certify(state.registration, state.upload, digest),
                settling=True,
            )
        except LedgerError:
            # The transaction failed on the ledger, so certifying again is safe
            self.mark_pending(None)
            raise

    def mark_pending(self, digest: str | None) -> BlobFlowState:
        """
        Record (or clear) a submitted transaction whose confirmation was lost.

        While set, the flow settles that transaction by digest before it
        submits anything for the same step.
        """
        self._state = self._state.with_pending(digest)
        return self._state

    def restart(self) -> BlobFlowState:
        """
        Return an unfinished flow to ENCODED, discarding its registration
        and upload so nothing from the abandoned attempt is resubmitted.
        """
        if self._state.phase == BlobPhase.CERTIFIED:
            raise ProtocolStateError("restart", self._state.phase.value)
        if self._state.phase == BlobPhase.INIT:
            return self.encode()

        self._state = self._state.advance(
            BlobPhase.ENCODED,
            registration=None,
            upload=None,
            attempts=self._state.attempts + 1,
        )
        logger.info("blob_flow_restarted", flow_id=self._state.flow_id, attempts=self._state.attempts)
        return self._state

    async def run(self, max_restarts: int = DEFAULT_MAX_RESTARTS) -> CertifiedBlob:
        """
        Drive the flow from its current phase to CERTIFIED.

        An expired registration restarts the flow from ENCODED, at most
        `max_restarts` times; every other failure propagates.
        """
        restarts = 0
        while True:
            try:
                if self.phase == BlobPhase.INIT:
                    self.encode()
                if self.phase == BlobPhase.ENCODED:
                    await self.register()
                if self.phase == BlobPhase.REGISTERED:
                    await self.upload()
                if self.phase == BlobPhase.UPLOADED:
                    await self.certify()
            except RegistrationExpiredError:
                if restarts >= max_restarts:
                    raise
                restarts += 1
                self.restart()
                continue

            certified = self._state.certified
            if certified is None:
                raise ProtocolStateError("finish", self.phase.value)
            return certified
