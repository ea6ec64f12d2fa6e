"""
Transaction signing port.

Signing is the user's authorization point and lives in their wallet. The
core only hands a described transaction to a Signer and receives the
digest of the submitted transaction back.
"""

from abc import ABC, abstractmethod

from ..models import LedgerTransaction


class Signer(ABC):
    """A wallet that can authorize and submit transactions."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Account address transactions are signed for."""
        pass

    @abstractmethod
    async def sign_and_execute(self, transaction: LedgerTransaction) -> str:
        """
        Ask the wallet to sign and submit `transaction`.

        Returns:
            The digest of the submitted transaction

        Raises:
            Exception: Any failure, including the user declining to sign.
                The ledger client converts it to LedgerError.
        """
        pass
