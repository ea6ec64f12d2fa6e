"""
Blob Upload Models

The upload of one post's content is a tagged state value that survives
suspension across the two user-signing steps. Each transition produces a
new BlobFlowState; nothing is mutated in place.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import Field

from .base import FrozenModel


class BlobPhase(str, Enum):
    """
    Phases of a blob upload.

    The lifecycle moves strictly forward:
    INIT -> ENCODED -> REGISTERED -> UPLOADED -> CERTIFIED
    """

    INIT = "init"  # Canonical bytes held, nothing prepared
    ENCODED = "encoded"  # Size and digest computed, ready to register
    REGISTERED = "registered"  # Storage reserved by a signed register transaction
    UPLOADED = "uploaded"  # Bytes accepted by the storage network
    CERTIFIED = "certified"  # Blob finalized, content address issued


PHASE_ORDER = (
    BlobPhase.INIT,
    BlobPhase.ENCODED,
    BlobPhase.REGISTERED,
    BlobPhase.UPLOADED,
    BlobPhase.CERTIFIED,
)


class RegistrationReceipt(FrozenModel):
    """Confirmation of a signed register transaction."""

    confirmation_id: str = Field(description="Ledger digest of the register transaction")
    blob_object_id: str | None = Field(
        default=None, description="Blob object created by the registration, when known"
    )
    registered_epoch: int = Field(default=0, ge=0)
    expires_epoch: int | None = Field(
        default=None, description="Last epoch in which upload/certify may reference it"
    )


class UploadAck(FrozenModel):
    """Acknowledgement that the storage network holds the blob bytes."""

    confirmation_id: str
    content_address: str | None = Field(
        default=None, description="Blob id computed by the storage network, when reported"
    )
    certificate: dict = Field(default_factory=dict)


class CertifiedBlob(FrozenModel):
    """Result of certification: the blob's permanent address and handle."""

    content_address: str
    storage_handle: str


class BlobFlowState(FrozenModel):
    """State of a single publish attempt's blob upload."""

    flow_id: str = Field(default_factory=lambda: uuid4().hex)
    phase: BlobPhase = BlobPhase.INIT
    payload: bytes = Field(repr=False)
    digest: str = Field(description="SHA-256 of the canonical payload")
    size: int = Field(default=0, ge=0)
    epochs: int = Field(default=0, ge=0)
    owner: str = ""
    registration: RegistrationReceipt | None = None
    upload: UploadAck | None = None
    certified: CertifiedBlob | None = None
    pending_digest: str | None = Field(
        default=None,
        description="Submitted but unconfirmed transaction for the next step",
    )
    attempts: int = Field(default=0, ge=0, description="Completed restarts from ENCODED")
    last_error: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def advance(self, phase: BlobPhase, **updates: object) -> "BlobFlowState":
        """Return a copy moved to `phase` with `updates` applied."""
        return self.model_copy(
            update={
                "pending_digest": None,
                **updates,
                "phase": phase,
                "last_error": None,
                "updated_at": datetime.now(UTC),
            }
        )

    def with_error(self, error: str) -> "BlobFlowState":
        """Return a copy in the same phase recording a failed transition."""
        return self.model_copy(update={"last_error": error, "updated_at": datetime.now(UTC)})

    def with_pending(self, digest: str | None) -> "BlobFlowState":
        """Return a copy in the same phase awaiting (or no longer awaiting) `digest`."""
        return self.model_copy(update={"pending_digest": digest, "updated_at": datetime.now(UTC)})

    def reached(self, phase: BlobPhase) -> bool:
        """Whether this flow has reached or passed `phase`."""
        return PHASE_ORDER.index(self.phase) >= PHASE_ORDER.index(phase)
