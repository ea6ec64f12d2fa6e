"""
Ledger Transaction Models

A ledger transaction is described as a list of Move calls. Serialization
and signing belong to the Signer (the user's wallet); these models are the
contract between the binder that builds a call and the signer that
authorizes it.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import Field

from .base import FrozenModel


class ObjectArg(FrozenModel):
    """Reference to an on-ledger object passed into a Move call."""

    kind: Literal["object"] = "object"
    object_id: str


class PureArg(FrozenModel):
    """A plain value passed into a Move call."""

    kind: Literal["pure"] = "pure"
    type: Literal["string", "u64", "u32", "bool", "address", "id", "vector"]
    value: Any


CallArg = ObjectArg | PureArg


class MoveCall(FrozenModel):
    """One entry-point invocation: `<package>::<module>::<function>`."""

    target: str
    arguments: list[CallArg] = Field(default_factory=list)
    type_arguments: list[str] = Field(default_factory=list)

    @property
    def function(self) -> str:
        return self.target.rsplit("::", 1)[-1]


class LedgerTransaction(FrozenModel):
    """A transaction block awaiting the sender's signature."""

    sender: str
    calls: list[MoveCall] = Field(min_length=1)
    gas_budget: int | None = None
    description: str = Field(default="", description="Human-readable purpose shown at signing")


class TransactionStatus(str, Enum):
    """Execution status reported in transaction effects."""

    SUCCESS = "success"
    FAILURE = "failure"


class TransactionResult(FrozenModel):
    """Effects of an executed transaction."""

    digest: str
    status: TransactionStatus = TransactionStatus.SUCCESS
    error: str | None = None
    created_object_ids: list[str] = Field(default_factory=list)
    created_object_types: dict[str, str] = Field(default_factory=dict)
    events: list[dict[str, Any]] = Field(default_factory=list)
    timestamp_ms: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def created_of_type(self, type_suffix: str) -> str | None:
        """First created object whose Move type ends with `type_suffix`."""
        for object_id, object_type in self.created_object_types.items():
            if object_type.endswith(type_suffix):
                return object_id
        return None
