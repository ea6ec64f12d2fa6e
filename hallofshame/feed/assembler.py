"""
Feed Assembler

Rebuilds the public feed from the ledger on every query. Record ids are
discovered by up to three strategies, deduplicated, fetched, ordered and
optionally hydrated with their content.

Discovery failures never raise. They are logged and come back as a
FeedResult whose outcome is ERROR, so "no posts" and "could not look"
stay distinguishable.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from ..config import DiscoveryMode, Settings
from ..errors import (
    ContentParseError,
    FetchError,
    IntegrityError,
    LedgerError,
    NotFound,
    ShameError,
    TransportError,
)
from ..ledger.base_client import BaseLedgerClient
from ..ledger.binder import record_id_from_event
from ..ledger.records import RecordReader
from ..ledger.transactions import RECORD_TYPE_SUFFIX, publish_event_type, registry_id
from ..models import (
    ContentStatus,
    DiscoveryOutcome,
    DiscoveryResult,
    FeedEntry,
    FeedResult,
    PostRecord,
    feed_sort_key,
)
from ..storage.fetcher import ContentFetcher

logger = structlog.get_logger(__name__)


class FeedAssembler:
    """
    Assembles the feed and single-post views.

    Args:
        ledger: Ledger client for discovery and record reads
        fetcher: Content fetcher; without one, entries are not hydrated
        settings: Optional settings override
    """

    def __init__(
        self,
        ledger: BaseLedgerClient,
        fetcher: ContentFetcher | None = None,
        settings: Settings | None = None,
    ):
        self._ledger = ledger
        self._records = RecordReader(ledger)
        self._fetcher = fetcher
        self.settings = settings or ledger.settings

    # ==================== Discovery ====================

    async def _discover_from_events(self) -> list[str]:
        """Scan a bounded window of recent publish events."""
        events = await self._ledger.query_events(
            {"MoveEventType": publish_event_type(self.settings)},
            limit=self.settings.feed_event_window,
        )
        ids = []
        for event in events:
            record_id = record_id_from_event(event.get("parsedJson") or {})
            if record_id:
                ids.append(record_id)
        return ids

    async def _discover_from_dynamic_fields(self) -> list[str]:
        """Records attached to the registry as dynamic fields."""
        fields = await self._ledger.get_dynamic_fields(registry_id(self.settings))
        return [field["objectId"] for field in fields if field.get("objectId")]

    async def _discover_from_owned_objects(self) -> list[str]:
        """Records owned by the registry object."""
        objects = await self._ledger.get_owned_objects(registry_id(self.settings))
        return [
            obj["objectId"]
            for obj in objects
            if obj.get("objectId") and str(obj.get("type", "")).endswith(RECORD_TYPE_SUFFIX)
        ]

    def _strategies(self) -> list[tuple[str, Callable[[], Awaitable[list[str]]]]]:
        mode = self.settings.feed_discovery
        strategies: list[tuple[str, Callable[[], Awaitable[list[str]]]]] = []
        if mode in (DiscoveryMode.EVENTS, DiscoveryMode.BOTH):
            strategies.append(("events", self._discover_from_events))
        if mode in (DiscoveryMode.REGISTRY, DiscoveryMode.BOTH):
            strategies.append(("dynamic_fields", self._discover_from_dynamic_fields))
            strategies.append(("owned_objects", self._discover_from_owned_objects))
        return strategies

    async def discover(self) -> DiscoveryResult:
        """
        Run every configured discovery strategy.

        A failing strategy is logged and recorded; the result is ERROR
        only when all of them fail.
        """
        found: list[str] = []
        errors: list[str] = []
        strategies = self._strategies()

        for name, strategy in strategies:
            try:
                ids = await strategy()
            except ShameError as e:
                logger.warning("feed_discovery_failed", strategy=name, error=str(e))
                errors.append(f"{name}: {e}")
                continue
            logger.debug("feed_discovery_strategy", strategy=name, found=len(ids))
            found.extend(ids)

        record_ids = list(dict.fromkeys(found))

        if strategies and len(errors) == len(strategies):
            outcome = DiscoveryOutcome.ERROR
        elif record_ids:
            outcome = DiscoveryOutcome.SUCCESS
        else:
            outcome = DiscoveryOutcome.EMPTY

        return DiscoveryResult(record_ids=record_ids, outcome=outcome, errors=errors)

    # ==================== Feed ====================

    async def list_posts(self, hydrate: bool = False) -> FeedResult:
        """
        Build the ordered feed.

        Args:
            hydrate: Also fetch each record's content

        Returns:
            FeedResult sorted by upvotes then recency. Ids that do not
            resolve to a valid record are listed in `skipped_ids`.
        """
        discovery = await self.discover()
        if discovery.outcome == DiscoveryOutcome.ERROR:
            return FeedResult(outcome=DiscoveryOutcome.ERROR, errors=discovery.errors)

        try:
            records, skipped = await self._records.get_records(discovery.record_ids)
        except (TransportError, LedgerError) as e:
            logger.warning("feed_records_failed", count=len(discovery.record_ids), error=str(e))
            return FeedResult(
                outcome=DiscoveryOutcome.ERROR,
                errors=[*discovery.errors, f"records: {e}"],
            )

        # Different discovered ids can resolve to the same record
        unique = list({record.id: record for record in records}.values())
        unique.sort(key=feed_sort_key)

        if hydrate:
            entries = await self._hydrate_all(unique)
        else:
            entries = [FeedEntry(record=record) for record in unique]

        logger.info(
            "feed_assembled",
            posts=len(entries),
            skipped=len(skipped),
            partial_errors=len(discovery.errors),
        )
        return FeedResult(
            entries=entries,
            outcome=DiscoveryOutcome.SUCCESS if entries else DiscoveryOutcome.EMPTY,
            errors=discovery.errors,
            skipped_ids=skipped,
        )

    async def get_post(self, record_id: str, hydrate: bool = True) -> FeedEntry | None:
        """
        Fetch one post for the detail view.

        Returns:
            The entry, or None if the id is not a post record

        Raises:
            TransportError / LedgerError: If the record read fails
        """
        record = await self._records.get_record(record_id)
        if record is None:
            return None
        if not hydrate:
            return FeedEntry(record=record)
        return await self.hydrate(record)

    # ==================== Hydration ====================

    async def hydrate(self, record: PostRecord) -> FeedEntry:
        """Join a record with its content; failures become a content status."""
        if self._fetcher is None:
            return FeedEntry(record=record)

        try:
            content = await self._fetcher.fetch(record.content_address)
        except NotFound as e:
            return FeedEntry(record=record, content_status=ContentStatus.EXPIRED, error=str(e))
        except (IntegrityError, ContentParseError) as e:
            logger.warning("feed_content_invalid", record_id=record.id, error=str(e))
            return FeedEntry(record=record, content_status=ContentStatus.INVALID, error=str(e))
        except (FetchError, TransportError) as e:
            logger.warning("feed_content_unavailable", record_id=record.id, error=str(e))
            return FeedEntry(record=record, content_status=ContentStatus.UNAVAILABLE, error=str(e))

        return FeedEntry(record=record, content=content, content_status=ContentStatus.LOADED)

    async def _hydrate_all(self, records: list[PostRecord]) -> list[FeedEntry]:
        semaphore = asyncio.Semaphore(self.settings.feed_hydration_workers)

        async def bounded(record: PostRecord) -> FeedEntry:
            async with semaphore:
                return await self.hydrate(record)

        return list(await asyncio.gather(*(bounded(record) for record in records)))
