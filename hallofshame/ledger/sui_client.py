"""
Sui Ledger Client Implementation

Concrete ledger client speaking Sui JSON-RPC over httpx. Reads go straight
to the fullnode; writes are handed to the configured Signer (the user's
wallet) and then confirmed by polling for the transaction's effects.
"""

import asyncio
from typing import Any

import httpx
import structlog

from ..config import Settings
from ..errors import LedgerError, TransactionPendingError, TransportError
from ..models import LedgerTransaction, TransactionResult, TransactionStatus, coerce_int
from .base_client import BaseLedgerClient
from .signer import Signer

logger = structlog.get_logger(__name__)

# Fullnodes cap page sizes for list queries
RPC_PAGE_LIMIT = 50

OBJECT_OPTIONS = {"showContent": True, "showType": True, "showOwner": True}
TRANSACTION_OPTIONS = {"showEffects": True, "showEvents": True, "showObjectChanges": True}


def parse_transaction_block(block: dict[str, Any]) -> TransactionResult:
    """Convert a `sui_getTransactionBlock` response into TransactionResult."""
    effects = block.get("effects") or {}
    status = effects.get("status") or {}
    succeeded = status.get("status") == "success"

    created: dict[str, str] = {}
    for change in block.get("objectChanges") or []:
        if change.get("type") == "created" and change.get("objectId"):
            created[change["objectId"]] = change.get("objectType", "")

    timestamp = block.get("timestampMs")

    return TransactionResult(
        digest=block.get("digest", ""),
        status=TransactionStatus.SUCCESS if succeeded else TransactionStatus.FAILURE,
        error=None if succeeded else status.get("error") or "Transaction failed",
        created_object_ids=list(created),
        created_object_types=created,
        events=list(block.get("events") or []),
        timestamp_ms=coerce_int(timestamp) if timestamp is not None else None,
    )


class SuiLedgerClient(BaseLedgerClient):
    """
    Ledger client implementation for Sui.

    Args:
        settings: Configuration (RPC URL, timeouts, gas budget)
        signer: Wallet used for write transactions; omit for read-only use
        http_client: Optional pre-built client, mainly for tests
    """

    def __init__(
        self,
        settings: Settings | None = None,
        signer: Signer | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings, signer)
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._request_id = 0

    async def initialize(self) -> None:
        """Open the HTTP client and verify the fullnode answers."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds)

        chain_id = await self._rpc("sui_getChainIdentifier", [])
        self._initialized = True
        logger.info(
            "sui_client_initialized",
            network=self.settings.sui_network.value,
            chain_id=chain_id,
        )

    async def close(self) -> None:
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
        self._http_client = None
        self._initialized = False

    def _get_client(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not initialized."""
        if self._http_client is None:
            raise TransportError("Sui client not initialized. Call initialize() first.")
        return self._http_client

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """
        Make one JSON-RPC call.

        Raises:
            TransportError: On HTTP or network failure
            LedgerError: When the fullnode returns a JSON-RPC error
        """
        client = self._get_client()
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(self.settings.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"{method} returned invalid JSON") from e

        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise LedgerError(f"{method}: {message}")
        return body.get("result")

    # ==================== Transactions ====================

    async def execute(self, transaction: LedgerTransaction) -> TransactionResult:
        signer = self.signer
        if transaction.gas_budget is None:
            transaction = transaction.model_copy(update={"gas_budget": self.settings.gas_budget})

        try:
            digest = await signer.sign_and_execute(transaction)
        except LedgerError:
            raise
        except Exception as e:
            # Whether the wallet submitted is unknown, so this is never retryable
            logger.warning(
                "transaction_not_submitted",
                calls=[call.target for call in transaction.calls],
                error=str(e),
            )
            raise LedgerError(f"Transaction was not submitted: {e}") from e

        if not digest:
            raise LedgerError("Unable to retrieve digest from submitted transaction")

        try:
            result = await self.wait_for_transaction(digest)
        except TransactionPendingError:
            raise
        except TransportError as e:
            # Submitted: from here on only the digest may be used to settle it
            raise TransactionPendingError(
                f"Transaction {digest} submitted but confirmation failed: {e}", digest=digest
            ) from e
        if not result.succeeded:
            logger.warning("transaction_rejected", digest=digest, error=result.error)
            raise LedgerError(result.error or f"Transaction {digest} failed", digest=digest)

        logger.info(
            "transaction_confirmed",
            digest=digest,
            calls=[call.function for call in transaction.calls],
            created=len(result.created_object_ids),
        )
        return result

    async def wait_for_transaction(
        self,
        digest: str,
        timeout_seconds: float | None = None,
    ) -> TransactionResult:
        """
        Poll until the transaction's effects are available.

        Polls with a growing interval to avoid overwhelming the fullnode.

        Raises:
            TransactionPendingError: If effects are not available within the timeout
        """
        timeout = timeout_seconds or self.settings.transaction_timeout_seconds
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        poll_interval = 0.5

        while True:
            try:
                block = await self._rpc("sui_getTransactionBlock", [digest, TRANSACTION_OPTIONS])
            except LedgerError:
                block = None  # Not yet indexed by this fullnode

            if block and block.get("effects"):
                block.setdefault("digest", digest)
                return parse_transaction_block(block)

            if loop.time() - start_time > timeout:
                raise TransactionPendingError(
                    f"Transaction {digest} not confirmed within {timeout}s", digest=digest
                )

            await asyncio.sleep(poll_interval)
            poll_interval = min(poll_interval * 1.5, 5.0)

    # ==================== Reads ====================

    async def get_object(self, object_id: str) -> dict[str, Any] | None:
        result = await self._rpc("sui_getObject", [object_id, OBJECT_OPTIONS])
        if not result or result.get("error"):
            return None
        data: dict[str, Any] | None = result.get("data")
        return data

    async def get_objects(self, object_ids: list[str]) -> dict[str, dict[str, Any] | None]:
        found: dict[str, dict[str, Any] | None] = {}
        for start in range(0, len(object_ids), RPC_PAGE_LIMIT):
            chunk = object_ids[start:start + RPC_PAGE_LIMIT]
            results = await self._rpc("sui_multiGetObjects", [chunk, OBJECT_OPTIONS]) or []
            for object_id, result in zip(chunk, results):
                found[object_id] = None if result.get("error") else result.get("data")
        return found

    async def query_events(
        self,
        event_filter: dict[str, Any],
        limit: int,
    ) -> list[dict[str, Any]]:
        events: list[dict[str, Any]] = []
        cursor = None

        while len(events) < limit:
            page = await self._rpc(
                "suix_queryEvents",
                [event_filter, cursor, min(RPC_PAGE_LIMIT, limit - len(events)), True],
            ) or {}
            data = page.get("data") or []
            events.extend(data)
            if not page.get("hasNextPage") or not data:
                break
            cursor = page.get("nextCursor")

        return events[:limit]

    async def get_dynamic_fields(self, parent_id: str) -> list[dict[str, Any]]:
        fields: list[dict[str, Any]] = []
        cursor = None

        while True:
            page = await self._rpc(
                "suix_getDynamicFields", [parent_id, cursor, RPC_PAGE_LIMIT]
            ) or {}
            fields.extend(page.get("data") or [])
            if not page.get("hasNextPage"):
                return fields
            cursor = page.get("nextCursor")

    async def get_owned_objects(self, owner: str) -> list[dict[str, Any]]:
        objects: list[dict[str, Any]] = []
        cursor = None
        query = {"options": OBJECT_OPTIONS}

        while True:
            page = await self._rpc(
                "suix_getOwnedObjects", [owner, query, cursor, RPC_PAGE_LIMIT]
            ) or {}
            for item in page.get("data") or []:
                if item.get("data"):
                    objects.append(item["data"])
            if not page.get("hasNextPage"):
                return objects
            cursor = page.get("nextCursor")
