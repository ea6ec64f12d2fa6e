"""
Post record reads.

Parses ledger objects into PostRecords and fetches records by id. A ledger
object that is not a well-formed post record parses to None; callers treat
that as "skip", never as a fatal error.
"""

from typing import Any

import structlog
from pydantic import ValidationError as ModelValidationError

from ..models import PostRecord, coerce_int, decode_ledger_string
from .base_client import BaseLedgerClient

logger = structlog.get_logger(__name__)

# Field names the storage handle has been stored under across contract versions
STORAGE_HANDLE_FIELDS = ("blob_object_id", "shared_blob_id")
# Field names carrying the paid/burnt amount
VALUE_FIELDS = ("total_value_locked", "total_burnt")


def _object_id(value: Any) -> str | None:
    """Read an `ID` (plain string) or `UID` (`{"id": "0x.."}`) field."""
    if isinstance(value, dict):
        inner = value.get("id")
        return _object_id(inner)
    if isinstance(value, str) and value:
        return value
    return None


def _record_fields(data: dict[str, Any]) -> dict[str, Any] | None:
    """Extract the Move struct fields from an object, unwrapping dynamic fields."""
    content = data.get("content")
    if not isinstance(content, dict) or content.get("dataType") != "moveObject":
        return None

    fields = content.get("fields")
    if not isinstance(fields, dict):
        return None

    # Records attached as dynamic fields are wrapped in Field<K, V>
    value = fields.get("value")
    if "blob_id" not in fields and isinstance(value, dict) and isinstance(value.get("fields"), dict):
        fields = value["fields"]
    return fields


def parse_post_record(data: dict[str, Any] | None) -> PostRecord | None:
    """
    Parse one ledger object into a PostRecord.

    Missing `title` becomes "Untitled"; a missing storage handle is kept
    as None so the record can still be displayed. Objects without a
    content address are not post records.
    """
    if not data:
        return None

    fields = _record_fields(data)
    if fields is None:
        return None

    # Prefer the struct UID: a dynamic-field wrapper has its own objectId
    record_id = _object_id(fields.get("id")) or _object_id(data.get("objectId"))
    if not record_id:
        return None

    try:
        content_address = decode_ledger_string(fields.get("blob_id"))
        if not content_address:
            return None

        storage_handle = None
        for name in STORAGE_HANDLE_FIELDS:
            storage_handle = _object_id(fields.get(name))
            if storage_handle:
                break

        total_burnt = 0
        for name in VALUE_FIELDS:
            if fields.get(name) is not None:
                total_burnt = fields[name]
                break

        return PostRecord(
            id=record_id,
            title=decode_ledger_string(fields.get("title")) or None,
            content_address=content_address,
            storage_handle=storage_handle,
            author=fields.get("author") or "",
            created_at=coerce_int(fields.get("timestamp")),
            upvote_count=coerce_int(fields.get("upvote_count")),
            total_burnt=coerce_int(total_burnt),
        )
    except (TypeError, ValueError, ModelValidationError) as e:
        logger.warning("record_parse_failed", record_id=record_id, error=str(e))
        return None


class RecordReader:
    """Fetches post records from the ledger."""

    def __init__(self, ledger: BaseLedgerClient):
        self._ledger = ledger

    async def get_record(self, record_id: str) -> PostRecord | None:
        """
        Fetch one record.

        Returns:
            The record, or None if the id does not resolve to a post record

        Raises:
            TransportError / LedgerError: If the read itself fails
        """
        return parse_post_record(await self._ledger.get_object(record_id))

    async def get_records(self, record_ids: list[str]) -> tuple[list[PostRecord], list[str]]:
        """
        Fetch several records.

        Returns:
            (records, skipped_ids): ids that did not resolve to a valid
            record are returned separately rather than raising
        """
        if not record_ids:
            return [], []

        objects = await self._ledger.get_objects(record_ids)
        records: list[PostRecord] = []
        skipped: list[str] = []

        for record_id in record_ids:
            record = parse_post_record(objects.get(record_id))
            if record is None:
                skipped.append(record_id)
            else:
                records.append(record)

        if skipped:
            logger.info("records_skipped", count=len(skipped), record_ids=skipped)
        return records, skipped
