"""
Feed Models

The feed is reconstructed from the ledger on every query. Discovery and
hydration outcomes are reported as data, so callers can tell an empty
hall from a failed query.
"""

from enum import Enum

from pydantic import Field

from .base import FrozenModel
from .post import PostContent, PostRecord


class ContentStatus(str, Enum):
    """What happened when a record's content was hydrated."""

    LOADED = "loaded"
    EXPIRED = "expired"  # Storage network no longer has the blob
    UNAVAILABLE = "unavailable"  # Transport failure; may succeed later
    INVALID = "invalid"  # Bytes fetched but not a content document
    SKIPPED = "skipped"  # Hydration not requested


class DiscoveryOutcome(str, Enum):
    """Typed outcome of a discovery query."""

    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


class DiscoveryResult(FrozenModel):
    """Record ids found by one or more discovery strategies."""

    record_ids: list[str] = Field(default_factory=list)
    outcome: DiscoveryOutcome = DiscoveryOutcome.EMPTY
    errors: list[str] = Field(default_factory=list)


class FeedEntry(FrozenModel):
    """A record with whatever content could be joined to it."""

    record: PostRecord
    content: PostContent | None = None
    content_status: ContentStatus = ContentStatus.SKIPPED
    error: str | None = None

    @property
    def is_tombstone(self) -> bool:
        """Record persists but its content is gone."""
        return self.content_status == ContentStatus.EXPIRED


class FeedResult(FrozenModel):
    """Ordered feed plus the discovery outcome that produced it."""

    entries: list[FeedEntry] = Field(default_factory=list)
    outcome: DiscoveryOutcome = DiscoveryOutcome.EMPTY
    errors: list[str] = Field(default_factory=list)
    skipped_ids: list[str] = Field(default_factory=list)

    @property
    def records(self) -> list[PostRecord]:
        return [entry.record for entry in self.entries]

    @property
    def failed(self) -> bool:
        return self.outcome == DiscoveryOutcome.ERROR
