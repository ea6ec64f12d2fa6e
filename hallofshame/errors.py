"""
Hall of Shame error taxonomy.

Every failure the publish, curate and read paths surface is one of these.
Adapters translate transport-library exceptions into this hierarchy so
callers never see an httpx exception.
"""


class ShameError(Exception):
    """Base exception for all Hall of Shame errors."""
    pass


class ValidationError(ShameError):
    """Raised when local input is malformed. Never retried."""
    pass


class PreconditionError(ShameError):
    """Raised when a required linkage (e.g. a storage handle) is missing."""
    pass


class ProtocolStateError(ShameError):
    """Raised when a state-machine transition is attempted out of order."""

    def __init__(self, operation: str, phase: str):
        self.operation = operation
        self.phase = phase
        super().__init__(f"Cannot {operation} while blob flow is {phase}")


class LedgerError(ShameError):
    """
    Raised when the ledger rejects a transaction.

    The ledger's own message is kept verbatim so it can be shown to the
    user. Recovery means re-initiating the whole flow.
    """

    def __init__(self, message: str, digest: str | None = None):
        self.digest = digest
        super().__init__(message)


class StorageError(ShameError):
    """Raised when a storage network write-path call fails."""
    pass


class RegistrationExpiredError(StorageError):
    """Raised when a registration is too old to upload or certify against."""
    pass


class TransportError(ShameError):
    """Raised on network or timeout failures. Retryable at the call site."""
    pass


class TransactionPendingError(TransportError):
    """
    Raised when a signed transaction was submitted but its effects were not
    seen in time.

    It may still land, so it is resolved by `digest` and never signed again.
    """

    def __init__(self, message: str, digest: str):
        self.digest = digest
        super().__init__(message)


class FetchError(ShameError):
    """Raised when content cannot be read from the storage network."""
    pass


class NotFound(FetchError):
    """Raised when the storage network reports a content address absent."""

    def __init__(self, content_address: str):
        self.content_address = content_address
        super().__init__(f"Content {content_address} not found (expired or never certified)")


class IntegrityError(FetchError):
    """Raised when fetched bytes do not match the expected digest."""
    pass


class ContentParseError(ShameError):
    """Raised when fetched bytes are not a valid content document."""
    pass
