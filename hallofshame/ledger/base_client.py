"""
Ledger Client Base

Abstract interface over the ledger the post records live on. The concrete
client talks to a Sui fullnode; tests use an in-memory ledger.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..config import Settings, get_settings
from ..errors import LedgerError
from ..models import LedgerTransaction, TransactionResult
from .signer import Signer


class BaseLedgerClient(ABC):
    """
    Abstract base class for ledger client implementations.

    The client handles:
    - Submitting signed transactions and waiting for their effects
    - Reading objects by id
    - Querying the event log
    - Enumerating dynamic fields and owned objects of a parent object
    """

    def __init__(self, settings: Settings | None = None, signer: Signer | None = None):
        self.settings = settings or get_settings()
        self._signer = signer
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and verify the ledger is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup resources."""
        pass

    # ==================== Transactions ====================

    @abstractmethod
    async def execute(self, transaction: LedgerTransaction) -> TransactionResult:
        """
        Sign, submit and wait for a transaction.

        Returns:
            The transaction's effects

        Raises:
            LedgerError: If the signer declines or the ledger rejects it
            TransactionPendingError: If it was submitted but not confirmed; it
                carries the digest to settle it with `wait_for_transaction`
        """
        pass

    @abstractmethod
    async def wait_for_transaction(
        self,
        digest: str,
        timeout_seconds: float | None = None,
    ) -> TransactionResult:
        """
        Wait for an already-submitted transaction's effects.

        Used to settle a transaction whose confirmation was lost, without
        signing it again.

        Raises:
            TransactionPendingError: If effects are still not available
        """
        pass

    # ==================== Reads ====================

    @abstractmethod
    async def get_object(self, object_id: str) -> dict[str, Any] | None:
        """
        Get an object with its content.

        Returns:
            The object data (`objectId`, `type`, `content`), or None if the
            object does not exist
        """
        pass

    async def get_objects(self, object_ids: list[str]) -> dict[str, dict[str, Any] | None]:
        """Get several objects. Missing objects map to None."""
        return {object_id: await self.get_object(object_id) for object_id in object_ids}

    @abstractmethod
    async def query_events(
        self,
        event_filter: dict[str, Any],
        limit: int,
    ) -> list[dict[str, Any]]:
        """Most recent events matching `event_filter`, newest first."""
        pass

    @abstractmethod
    async def get_dynamic_fields(self, parent_id: str) -> list[dict[str, Any]]:
        """Dynamic fields attached to `parent_id`."""
        pass

    @abstractmethod
    async def get_owned_objects(self, owner: str) -> list[dict[str, Any]]:
        """Objects owned by `owner`, with content."""
        pass

    # ==================== Utility Methods ====================

    @property
    def signer(self) -> Signer:
        """The configured signer, raising if this client is read-only."""
        if self._signer is None:
            raise LedgerError("No signer configured; this ledger client is read-only")
        return self._signer

    @property
    def is_initialized(self) -> bool:
        return self._initialized
