"""
Post Models

A post is split across two systems: the ledger-resident PostRecord is the
authority for identity and upvotes, while the storage-resident PostContent
holds the bulk text and images and may expire.
"""

from typing import Any

from pydantic import Field, field_validator

from .base import UNTITLED, FrozenModel

MAX_TITLE_LENGTH = 200
MAX_IMAGES = 4


class PostContent(FrozenModel):
    """
    Content document stored on the storage network.

    Wire shape is `{"title": str, "content": str, "images"?: [str]}`;
    `body` is the Python name for the wire's `content` key.
    """

    title: str = ""
    body: str = Field(default="", alias="content")
    images: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """Wire representation. `images` is omitted when empty."""
        wire: dict[str, Any] = {"title": self.title, "content": self.body}
        if self.images:
            wire["images"] = list(self.images)
        return wire


class PostRecord(FrozenModel):
    """
    Ledger-resident record of one published post.

    Every field except `upvote_count` (and the derived `total_burnt`) is
    immutable after creation.
    """

    id: str = Field(description="Ledger object id")
    title: str = Field(default=UNTITLED, description="Title, shown as Untitled when absent")
    content_address: str = Field(description="Storage network blob id")
    storage_handle: str | None = Field(
        default=None,
        description="Ledger object wrapping the blob; required for lifespan extension",
    )
    author: str = Field(default="", description="Creator's account address")
    created_at: int = Field(default=0, ge=0, description="Ledger timestamp, ms since epoch")
    upvote_count: int = Field(default=0, ge=0)
    total_burnt: int = Field(default=0, ge=0, description="MIST paid into the record")

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            return UNTITLED
        return str(v)

    @property
    def can_extend(self) -> bool:
        """Whether upvotes can extend this record's storage lifespan."""
        return bool(self.storage_handle)


def feed_sort_key(record: PostRecord) -> tuple[int, int, str]:
    """
    Feed ordering key: most upvoted first, then newest first.

    The id makes the order total when both counts and timestamps tie.
    """
    return (-record.upvote_count, -record.created_at, record.id)
