"""
Tests for the command-line read paths.
"""

import json

import pytest
import structlog

from hallofshame import cli
from hallofshame.cli import build_parser, format_entry, run_command
from hallofshame.encoding import content_digest, encode_content
from hallofshame.models import ContentStatus, FeedEntry, PostRecord
from hallofshame.monitoring.logging import configure_logging

from tests.doubles import AUTHOR, make_settings


@pytest.fixture(autouse=True)
def cli_logging():
    """Configure logging as main() does, so stdout carries only command output."""
    configure_logging(level="WARNING")
    structlog.configure(cache_logger_on_first_use=False)
    yield
    structlog.reset_defaults()


def _run(argv, settings, ledger, storage):
    return run_command(build_parser().parse_args(argv), settings, ledger=ledger, storage=storage)


class TestParser:
    """Tests for argument parsing."""

    def test_feed_flags(self):
        """Test feed options parse."""
        args = build_parser().parse_args(["feed", "--hydrate", "--json"])

        assert args.command == "feed"
        assert args.hydrate and args.json

    def test_command_required(self):
        """Test a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatEntry:
    """Tests for entry rendering."""

    def test_tombstone(self):
        """Test expired content renders as a tombstone line."""
        record = PostRecord(id="0x1", content_address="blob", author=AUTHOR, upvote_count=2)
        entry = FeedEntry(record=record, content_status=ContentStatus.EXPIRED)

        text = format_entry(entry)

        assert "Untitled  [2 upvotes]" in text
        assert "content expired" in text
        assert "upvotes disabled" in text


class TestRunCommand:
    """Tests for run_command against in-memory networks."""

    @pytest.mark.asyncio
    async def test_feed(self, settings, ledger, storage, capsys):
        """Test the feed lists posts most upvoted first."""
        ledger.add_record(title="Low", upvote_count=1)
        ledger.add_record(title="High", upvote_count=9)

        code = await _run(["feed"], settings, ledger, storage)

        out = capsys.readouterr().out
        assert code == 0
        assert out.index("High") < out.index("Low")

    @pytest.mark.asyncio
    async def test_feed_json(self, settings, ledger, storage, capsys):
        """Test JSON output lists one object per entry."""
        ledger.add_record(title="Only")

        code = await _run(["feed", "--json"], settings, ledger, storage)

        entries = json.loads(capsys.readouterr().out)
        assert code == 0
        assert entries[0]["record"]["title"] == "Only"

    @pytest.mark.asyncio
    async def test_empty_feed(self, settings, ledger, storage, capsys):
        """Test an empty hall prints a friendly message."""
        assert await _run(["feed"], settings, ledger, storage) == 0
        assert "No posts yet." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_show_unknown(self, settings, ledger, storage):
        """Test showing an unknown record exits non-zero."""
        assert await _run(["show", "0x404"], settings, ledger, storage) == 1

    @pytest.mark.asyncio
    async def test_fetch(self, settings, ledger, storage, capsys):
        """Test fetch prints the decoded content."""
        payload = encode_content("Title", "Body")
        storage.put_raw("blob-1", payload)

        code = await _run(["fetch", "blob-1", "--digest", content_digest(payload)], settings, ledger, storage)

        assert code == 0
        assert json.loads(capsys.readouterr().out)["title"] == "Title"

    @pytest.mark.asyncio
    async def test_fetch_missing(self, settings, ledger, storage):
        """Test a missing blob exits with code 2."""
        assert await _run(["fetch", "blob-gone"], settings, ledger, storage) == 2

    @pytest.mark.asyncio
    async def test_integrity_failure(self, settings, ledger, storage):
        """Test a digest mismatch exits with code 1."""
        storage.put_raw("blob-1", encode_content("Title", "Body"))

        assert await _run(["fetch", "blob-1", "--digest", "0" * 64], settings, ledger, storage) == 1


class TestMain:
    """Tests for the console entry point."""

    @pytest.mark.parametrize(
        "overrides,expected",
        [({}, False), ({"log_json": True}, True), ({"app_env": "production"}, True)],
    )
    def test_log_format(self, monkeypatch, overrides, expected):
        """Test production always logs JSON."""
        configured = {}

        async def fake_run(args, settings):
            return 0

        monkeypatch.setattr(cli, "get_settings", lambda: make_settings(**overrides))
        monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: configured.update(kwargs))
        monkeypatch.setattr(cli, "run_command", fake_run)

        assert cli.main(["feed"]) == 0
        assert configured["json_output"] is expected
