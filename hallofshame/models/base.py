"""
Base Models and Common Types

Foundation classes for all Hall of Shame models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

UNTITLED = "Untitled"


def coerce_int(value: Any, default: int = 0) -> int:
    """
    Convert a ledger-rendered integer to int.

    Sui JSON-RPC renders u64 fields as decimal strings.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    return int(str(value), 10)


def decode_ledger_string(value: Any) -> str:
    """
    Decode a Move `String` or `vector<u8>` field into text.

    Older records store identifiers as raw byte vectors, which the RPC
    renders as a list of ints.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class FrozenModel(BaseModel):
    """Base for value objects that are never mutated in place."""

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )
