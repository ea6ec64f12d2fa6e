"""
Walrus Storage Network Client

Register, certify and extend are Move calls on the Walrus system object,
signed by the user through the ledger client. Blob bytes go to the upload
relay over HTTP; reads go to the public aggregator.
"""

from typing import Any

import httpx
import structlog

from ..config import Settings
from ..errors import (
    FetchError,
    LedgerError,
    NotFound,
    PreconditionError,
    RegistrationExpiredError,
    StorageError,
    TransportError,
)
from ..ledger.base_client import BaseLedgerClient
from ..ledger.transactions import (
    BLOB_TYPE_SUFFIX,
    build_certify_transaction,
    build_extend_transaction,
    build_register_transaction,
)
from ..models import (
    CertifiedBlob,
    RegistrationReceipt,
    TransactionResult,
    UploadAck,
    coerce_int,
    decode_ledger_string,
)
from .base_client import BaseStorageNetwork

logger = structlog.get_logger(__name__)

CERTIFIED_EVENT_SUFFIX = "::events::BlobCertified"
RELAY_PATH = "/v1/blob-upload-relay"
BLOB_PATH = "/v1/blobs"


def _find_epoch(fields: Any) -> int | None:
    """Search a Move struct's fields for its `epoch` value."""
    if not isinstance(fields, dict):
        return None
    if "epoch" in fields and not isinstance(fields["epoch"], dict):
        return coerce_int(fields["epoch"])
    for value in fields.values():
        if isinstance(value, dict):
            nested = _find_epoch(value.get("fields", value))
            if nested is not None:
                return nested
    return None


def _certified_blob_id(result: TransactionResult) -> str | None:
    for event in result.events:
        if str(event.get("type", "")).endswith(CERTIFIED_EVENT_SUFFIX):
            blob_id = decode_ledger_string((event.get("parsedJson") or {}).get("blob_id"))
            if blob_id:
                return blob_id
    return None


class WalrusStorageNetwork(BaseStorageNetwork):
    """
    Storage network implementation for Walrus.

    Args:
        settings: Configuration (aggregator, relay, Walrus object ids)
        ledger: Ledger client used to sign register/certify/extend; may be
            omitted for read-only use
        http_client: Optional pre-built client, mainly for tests
    """

    def __init__(
        self,
        settings: Settings | None = None,
        ledger: BaseLedgerClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings or (ledger.settings if ledger else None))
        self._ledger = ledger
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def initialize(self) -> None:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds)
        logger.info(
            "walrus_client_initialized",
            aggregator=self.settings.walrus_aggregator_url,
            relay=self.settings.walrus_upload_relay_url,
        )

    async def close(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
        self._http_client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise TransportError("Walrus client not initialized. Call initialize() first.")
        return self._http_client

    @property
    def ledger(self) -> BaseLedgerClient:
        if self._ledger is None:
            raise PreconditionError("Walrus writes require a ledger client")
        return self._ledger

    # ==================== Write Path ====================

    async def current_epoch(self) -> int:
        system_id = self.settings.walrus_system_object_id
        if not system_id:
            raise PreconditionError("walrus_system_object_id is not configured")

        data = await self.ledger.get_object(system_id)
        if data is None:
            raise StorageError(f"Walrus system object {system_id} not found")

        epoch = _find_epoch((data.get("content") or {}).get("fields"))
        if epoch is None:
            raise StorageError("Walrus system object carries no epoch")
        return epoch

    async def register(
        self,
        size: int,
        epochs: int,
        digest: str,
        owner: str,
        deletable: bool = False,
    ) -> RegistrationReceipt:
        epoch = await self.current_epoch()
        transaction = build_register_transaction(
            self.settings, size, epochs, digest, owner, deletable
        )
        result = await self.ledger.execute(transaction)

        blob_object_id = result.created_of_type(BLOB_TYPE_SUFFIX)
        if not blob_object_id:
            raise LedgerError(
                "Register transaction confirmed but created no blob object",
                digest=result.digest,
            )

        logger.info(
            "blob_registered",
            blob_object_id=blob_object_id,
            size=size,
            epochs=epochs,
            digest=result.digest,
        )
        return RegistrationReceipt(
            confirmation_id=result.digest,
            blob_object_id=blob_object_id,
            registered_epoch=epoch,
            expires_epoch=epoch + self.settings.registration_ttl_epochs,
        )

    async def _check_not_expired(self, registration: RegistrationReceipt) -> None:
        if registration.expires_epoch is None:
            return
        epoch = await self.current_epoch()
        if epoch > registration.expires_epoch:
            raise RegistrationExpiredError(
                f"Registration {registration.confirmation_id} expired at epoch "
                f"{registration.expires_epoch} (now {epoch})"
            )

    async def upload(self, registration: RegistrationReceipt, payload: bytes) -> UploadAck:
        """
        Send bytes to the upload relay.

        The relay keys uploads by the register transaction, so repeating
        the call for the same registration stores nothing new.
        """
        await self._check_not_expired(registration)
        client = self._get_client()

        url = self.settings.walrus_upload_relay_url.rstrip("/") + RELAY_PATH
        params = {"tx_id": registration.confirmation_id}
        if registration.blob_object_id:
            params["blob_object_id"] = registration.blob_object_id

        try:
            response = await client.post(
                url,
                params=params,
                content=payload,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Upload relay unreachable: {e}") from e

        if response.status_code >= 500:
            raise TransportError(f"Upload relay returned HTTP {response.status_code}")
        if response.status_code >= 400:
            raise StorageError(
                f"Upload relay rejected blob (HTTP {response.status_code}): {response.text}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise StorageError("Upload relay returned invalid JSON") from e

        logger.info(
            "blob_uploaded",
            confirmation_id=registration.confirmation_id,
            size=len(payload),
            blob_id=body.get("blob_id"),
        )
        return UploadAck(
            confirmation_id=registration.confirmation_id,
            content_address=body.get("blob_id"),
            certificate=body.get("confirmation_certificate") or {},
        )

    async def certify(
        self,
        registration: RegistrationReceipt,
        ack: UploadAck,
        owner: str,
    ) -> CertifiedBlob:
        if not registration.blob_object_id:
            raise PreconditionError("Registration carries no blob object to certify")
        await self._check_not_expired(registration)

        transaction = build_certify_transaction(
            self.settings, registration.blob_object_id, ack.certificate, owner
        )
        result = await self.ledger.execute(transaction)
        return self._certified(result, registration, ack)

    async def resolve_certify(
        self,
        registration: RegistrationReceipt,
        ack: UploadAck,
        digest: str,
    ) -> CertifiedBlob:
        if not registration.blob_object_id:
            raise PreconditionError("Registration carries no blob object to certify")

        result = await self.ledger.wait_for_transaction(digest)
        if not result.succeeded:
            raise LedgerError(result.error or f"Certification {digest} failed", digest=digest)
        return self._certified(result, registration, ack)

    def _certified(
        self,
        result: TransactionResult,
        registration: RegistrationReceipt,
        ack: UploadAck,
    ) -> CertifiedBlob:
        content_address = _certified_blob_id(result) or ack.content_address
        if not content_address:
            raise StorageError(
                f"Certification {result.digest} did not report a blob id"
            )

        logger.info(
            "blob_certified",
            content_address=content_address,
            storage_handle=registration.blob_object_id,
            digest=result.digest,
        )
        return CertifiedBlob(
            content_address=content_address,
            storage_handle=registration.blob_object_id,
        )

    async def extend(self, storage_handle: str, epochs: int, owner: str) -> str:
        transaction = build_extend_transaction(self.settings, storage_handle, epochs, owner)
        result = await self.ledger.execute(transaction)
        logger.info("blob_extended", storage_handle=storage_handle, epochs=epochs)
        return result.digest

    # ==================== Read Path ====================

    async def read(self, content_address: str) -> bytes:
        client = self._get_client()
        url = f"{self.settings.walrus_aggregator_url.rstrip('/')}{BLOB_PATH}/{content_address}"

        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Aggregator unreachable for {content_address}: {e}") from e

        if response.status_code == 404:
            raise NotFound(content_address)
        if response.status_code >= 400:
            raise FetchError(
                f"Aggregator returned HTTP {response.status_code} for {content_address}"
            )
        return response.content
