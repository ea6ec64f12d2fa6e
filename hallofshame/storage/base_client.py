"""
Storage Network Base

Abstract interface over the epoch-based blob storage network. The write
path is phased (register, upload, certify) because registration and
certification each need the user's signature; the read path is a plain
lookup by content address.
"""

from abc import ABC, abstractmethod

from ..config import Settings, get_settings
from ..models import CertifiedBlob, RegistrationReceipt, UploadAck


class BaseStorageNetwork(ABC):
    """
    Abstract base class for storage network implementations.

    Implementations must make `upload` idempotent per registration: a retry
    with the same confirmation id must not store a second copy.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def initialize(self) -> None:
        """Open connections. No-op by default."""

    async def close(self) -> None:
        """Close connections. No-op by default."""

    # ==================== Write Path ====================

    @abstractmethod
    async def register(
        self,
        size: int,
        epochs: int,
        digest: str,
        owner: str,
        deletable: bool = False,
    ) -> RegistrationReceipt:
        """
        Reserve storage for a blob through a signed register transaction.

        Raises:
            LedgerError: If the signer declines or the ledger rejects it
        """
        pass

    @abstractmethod
    async def upload(self, registration: RegistrationReceipt, payload: bytes) -> UploadAck:
        """
        Push blob bytes to the storage network.

        Raises:
            TransportError: On retryable network failure
            StorageError: If the storage network refuses the upload
        """
        pass

    @abstractmethod
    async def certify(
        self,
        registration: RegistrationReceipt,
        ack: UploadAck,
        owner: str,
    ) -> CertifiedBlob:
        """
        Finalize an uploaded blob through a signed certify transaction.

        Raises:
            LedgerError: If the signer declines or the ledger rejects it
            TransactionPendingError: If certify was submitted but not confirmed
        """
        pass

    @abstractmethod
    async def resolve_certify(
        self,
        registration: RegistrationReceipt,
        ack: UploadAck,
        digest: str,
    ) -> CertifiedBlob:
        """
        Settle a certify transaction that was submitted but not confirmed,
        without signing it again.

        Raises:
            TransactionPendingError: If it is still unconfirmed
            LedgerError: If it failed; certifying again is then safe
        """
        pass

    @abstractmethod
    async def extend(self, storage_handle: str, epochs: int, owner: str) -> str:
        """Extend a blob's storage by `epochs`; returns the transaction digest."""
        pass

    @abstractmethod
    async def current_epoch(self) -> int:
        """The storage network's current epoch."""
        pass

    # ==================== Read Path ====================

    @abstractmethod
    async def read(self, content_address: str) -> bytes:
        """
        Read blob bytes by content address.

        Raises:
            NotFound: If the blob is absent (expired or never certified)
            FetchError: On any other failure
        """
        pass
