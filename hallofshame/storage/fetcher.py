"""
Content fetcher.

Reads a post's content by address and parses it. Absence is reported as
NotFound so the feed can render the record as a tombstone.
"""

import structlog

from ..encoding import content_digest, decode_content
from ..errors import IntegrityError, NotFound
from ..models import PostContent
from .base_client import BaseStorageNetwork

logger = structlog.get_logger(__name__)


class ContentFetcher:
    """Fetches and decodes post content from the storage network."""

    def __init__(self, storage: BaseStorageNetwork):
        self._storage = storage

    async def fetch(self, content_address: str, expected_digest: str | None = None) -> PostContent:
        """
        Fetch one post's content.

        Args:
            content_address: Blob id from the post record
            expected_digest: Optional SHA-256 hex the bytes must match

        Raises:
            NotFound: If the content has expired or was never certified
            FetchError: On any other read failure
            IntegrityError: If the bytes do not match `expected_digest`
            ContentParseError: If the bytes are not a content document
        """
        try:
            payload = await self._storage.read(content_address)
        except NotFound:
            logger.info("content_not_found", content_address=content_address)
            raise

        if expected_digest is not None:
            actual = content_digest(payload)
            if actual != expected_digest:
                raise IntegrityError(
                    f"Content {content_address} digest {actual} != expected {expected_digest}"
                )

        return decode_content(payload)
