"""
Command-line read paths.

    hallofshame feed [--hydrate] [--json]
    hallofshame show RECORD_ID
    hallofshame fetch CONTENT_ADDRESS [--digest SHA256]

Connection settings come from SHAME_* environment variables or .env.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

import structlog

from .config import Settings, get_settings
from .errors import NotFound, ShameError
from .feed.assembler import FeedAssembler
from .feed.display import display_title, format_age, format_sui, short_address
from .ledger.base_client import BaseLedgerClient
from .ledger.sui_client import SuiLedgerClient
from .models import FeedEntry
from .monitoring.logging import configure_logging
from .storage.base_client import BaseStorageNetwork
from .storage.fetcher import ContentFetcher
from .storage.walrus_client import WalrusStorageNetwork

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hallofshame", description="Hall of Shame reader")
    subcommands = parser.add_subparsers(dest="command", required=True)

    feed = subcommands.add_parser("feed", help="List posts, most upvoted first")
    feed.add_argument("--hydrate", action="store_true", help="Fetch each post's content")
    feed.add_argument("--json", action="store_true", help="Print entries as JSON")

    show = subcommands.add_parser("show", help="Show one post with its content")
    show.add_argument("record_id", help="Post record object id")

    fetch = subcommands.add_parser("fetch", help="Print raw post content by blob id")
    fetch.add_argument("content_address", help="Walrus blob id")
    fetch.add_argument("--digest", default=None, help="Expected SHA-256 of the content")

    return parser


def format_entry(entry: FeedEntry, detail: bool = False) -> str:
    record = entry.record
    lines = [
        f"{display_title(record.title)}  [{record.upvote_count} upvotes]",
        f"  id: {record.id}",
        f"  by {short_address(record.author)}, {format_age(record.created_at)}"
        f", {format_sui(record.total_burnt)} SUI burnt",
    ]
    if not record.can_extend:
        lines.append("  (upvotes disabled: no storage handle)")

    if entry.content is not None:
        body = entry.content.body if detail else entry.content.body[:140]
        lines.append(f"  {body}")
        if entry.content.images:
            lines.append(f"  {len(entry.content.images)} image(s)")
    elif entry.is_tombstone:
        lines.append("  content expired")
    elif entry.error:
        lines.append(f"  content {entry.content_status.value}: {entry.error}")
    return "\n".join(lines)


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    ledger: BaseLedgerClient | None = None,
    storage: BaseStorageNetwork | None = None,
) -> int:
    """Execute one parsed command; returns the process exit code."""
    owns_clients = ledger is None
    ledger = ledger or SuiLedgerClient(settings)
    storage = storage or WalrusStorageNetwork(settings, ledger)

    try:
        if owns_clients:
            await ledger.initialize()
            await storage.initialize()

        fetcher = ContentFetcher(storage)

        if args.command == "feed":
            feed = await FeedAssembler(ledger, fetcher, settings).list_posts(hydrate=args.hydrate)
            if feed.failed:
                print("Feed unavailable: " + "; ".join(feed.errors), file=sys.stderr)
                return 1
            if args.json:
                print(json.dumps([entry.model_dump(mode="json") for entry in feed.entries], indent=2))
            elif not feed.entries:
                print("No posts yet.")
            else:
                print("\n\n".join(format_entry(entry) for entry in feed.entries))
            return 0

        if args.command == "show":
            entry = await FeedAssembler(ledger, fetcher, settings).get_post(args.record_id)
            if entry is None:
                print(f"No post record {args.record_id}", file=sys.stderr)
                return 1
            print(format_entry(entry, detail=True))
            return 0

        if args.command == "fetch":
            try:
                content = await fetcher.fetch(args.content_address, expected_digest=args.digest)
            except NotFound as e:
                print(str(e), file=sys.stderr)
                return 2
            print(json.dumps(content.to_wire(), indent=2, ensure_ascii=False))
            return 0

        raise ValueError(f"Unknown command {args.command}")

    except ShameError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if owns_clients:
            await storage.close()
            await ledger.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json or settings.is_production,
    )
    return asyncio.run(run_command(args, settings))


if __name__ == "__main__":
    sys.exit(main())
