"""
Transaction builders.

Pure functions that describe each ledger transaction the system submits.
Nothing here signs or sends anything; the binder and the storage network
hand these descriptions to a ledger client.
"""

from ..config import Settings
from ..errors import PreconditionError
from ..models import LedgerTransaction, MoveCall, ObjectArg, PureArg

MODULE = "hall_of_shame"
PUBLISH_FUNCTION = "publish_shame"
UPVOTE_FUNCTION = "upvote_shame"

# Move type of a post record, and of its publish event
RECORD_TYPE_SUFFIX = f"::{MODULE}::Shame"
PUBLISH_EVENT_SUFFIX = f"::{MODULE}::ShamePublished"

# Walrus system entry points
WALRUS_MODULE = "system"
BLOB_TYPE_SUFFIX = "::blob::Blob"


def _require(value: str, name: str) -> str:
    if not value:
        raise PreconditionError(f"{name} is not configured")
    return value


def package_target(settings: Settings, function: str) -> str:
    """Fully qualified entry point in the hall_of_shame module."""
    return f"{_require(settings.package_id, 'package_id')}::{MODULE}::{function}"


def walrus_target(settings: Settings, function: str) -> str:
    """Fully qualified entry point in the Walrus system module."""
    return f"{_require(settings.walrus_package_id, 'walrus_package_id')}::{WALRUS_MODULE}::{function}"


def publish_event_type(settings: Settings) -> str:
    return f"{_require(settings.package_id, 'package_id')}{PUBLISH_EVENT_SUFFIX}"


def registry_id(settings: Settings) -> str:
    """The shared registry object every post is published into."""
    return _require(settings.hall_of_shame_id, "hall_of_shame_id")


# ==================== Post Records ====================

def build_publish_transaction(
    settings: Settings,
    title: str,
    content_address: str,
    storage_handle: str,
    author: str,
) -> LedgerTransaction:
    """
    publish_shame(registry, title, blob_id, blob_object, clock)

    The clock is the ledger's time source; the record's timestamp is taken
    from it, never from the client.
    """
    registry = registry_id(settings)
    return LedgerTransaction(
        sender=author,
        description="Publish post",
        calls=[
            MoveCall(
                target=package_target(settings, PUBLISH_FUNCTION),
                arguments=[
                    ObjectArg(object_id=registry),
                    PureArg(type="string", value=title),
                    PureArg(type="string", value=content_address),
                    ObjectArg(object_id=storage_handle),
                    ObjectArg(object_id=settings.clock_object_id),
                ],
            )
        ],
    )


def build_upvote_transaction(
    settings: Settings,
    record_id: str,
    storage_handle: str,
    epochs_to_add: int,
    author: str,
) -> LedgerTransaction:
    """
    upvote_shame(record, blob_object, epochs)

    Increments the record's upvote count and extends the referenced blob's
    storage in one atomic transaction.
    """
    return LedgerTransaction(
        sender=author,
        description="Upvote post",
        calls=[
            MoveCall(
                target=package_target(settings, UPVOTE_FUNCTION),
                arguments=[
                    ObjectArg(object_id=record_id),
                    ObjectArg(object_id=storage_handle),
                    PureArg(type="u32", value=epochs_to_add),
                ],
            )
        ],
    )


# ==================== Walrus Blobs ====================

def build_register_transaction(
    settings: Settings,
    size: int,
    epochs: int,
    digest: str,
    owner: str,
    deletable: bool = False,
) -> LedgerTransaction:
    """Reserve storage for `size` bytes over `epochs` and register the blob."""
    system = _require(settings.walrus_system_object_id, "walrus_system_object_id")
    return LedgerTransaction(
        sender=owner,
        description="Register blob storage",
        calls=[
            MoveCall(
                target=walrus_target(settings, "register_blob"),
                arguments=[
                    ObjectArg(object_id=system),
                    PureArg(type="u64", value=size),
                    PureArg(type="u32", value=epochs),
                    PureArg(type="string", value=digest),
                    PureArg(type="bool", value=deletable),
                    PureArg(type="address", value=owner),
                ],
            )
        ],
    )


def build_certify_transaction(
    settings: Settings,
    blob_object_id: str,
    certificate: dict,
    owner: str,
) -> LedgerTransaction:
    """Finalize an uploaded blob with the storage nodes' certificate."""
    system = _require(settings.walrus_system_object_id, "walrus_system_object_id")
    return LedgerTransaction(
        sender=owner,
        description="Certify blob",
        calls=[
            MoveCall(
                target=walrus_target(settings, "certify_blob"),
                arguments=[
                    ObjectArg(object_id=system),
                    ObjectArg(object_id=blob_object_id),
                    PureArg(type="string", value=certificate.get("signature", "")),
                    PureArg(type="vector", value=list(certificate.get("signers", []))),
                    PureArg(type="string", value=certificate.get("serialized_message", "")),
                ],
            )
        ],
    )


def build_extend_transaction(
    settings: Settings,
    storage_handle: str,
    epochs: int,
    owner: str,
) -> LedgerTransaction:
    """Extend a blob's storage by `epochs`."""
    system = _require(settings.walrus_system_object_id, "walrus_system_object_id")
    return LedgerTransaction(
        sender=owner,
        description="Extend blob storage",
        calls=[
            MoveCall(
                target=walrus_target(settings, "extend_blob"),
                arguments=[
                    ObjectArg(object_id=system),
                    ObjectArg(object_id=storage_handle),
                    PureArg(type="u32", value=epochs),
                ],
            )
        ],
    )
