"""
Tests for the Curation Engine.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hallofshame.curation.engine import (
    CurationEngine,
    apply_tentative_upvote,
    epochs_owed,
    reconcile_record,
)
from hallofshame.errors import LedgerError, PreconditionError, TransportError
from hallofshame.ledger.records import RecordReader
from hallofshame.models import PostRecord

from tests.doubles import VOTER


def _record(**overrides):
    values = {"id": "0x1", "content_address": "blob-1", "storage_handle": "0x99", "upvote_count": 3}
    values.update(overrides)
    return PostRecord(**values)


# ==================== Pure Function Tests ====================


class TestReconcileRecord:
    """Tests for the tentative/authoritative merge."""

    def test_authoritative_wins(self):
        """Test a fresh read overwrites the tentative record."""
        tentative = _record(upvote_count=4)
        authoritative = _record(upvote_count=6)

        assert reconcile_record(tentative, authoritative) == authoritative

    def test_authoritative_wins_when_behind(self):
        """Test a lagging read still wins over the tentative guess."""
        tentative = _record(upvote_count=4)
        authoritative = _record(upvote_count=3)

        assert reconcile_record(tentative, authoritative).upvote_count == 3

    def test_no_read_keeps_tentative(self):
        """Test the tentative record stands when no read is available."""
        tentative = _record(upvote_count=4)

        assert reconcile_record(tentative, None) is tentative

    def test_different_records_rejected(self):
        """Test records with different ids cannot be merged."""
        with pytest.raises(ValueError):
            reconcile_record(_record(id="0x1"), _record(id="0x2"))


class TestTentativeUpvote:
    """Tests for apply_tentative_upvote and epochs_owed."""

    def test_increments_by_one(self):
        """Test the tentative count is one higher and the input is untouched."""
        record = _record(upvote_count=3)

        bumped = apply_tentative_upvote(record)

        assert bumped.upvote_count == 4
        assert record.upvote_count == 3

    def test_epochs_owed(self):
        """Test each upvote is worth one epoch."""
        assert epochs_owed() == 1
        assert epochs_owed(5) == 5
        assert epochs_owed(0) == 0

    def test_epochs_owed_negative(self):
        """Test a negative upvote count is rejected."""
        with pytest.raises(ValueError):
            epochs_owed(-1)


# ==================== Engine Tests ====================


class TestUpvote:
    """Tests for CurationEngine.upvote."""

    @pytest.mark.asyncio
    async def test_no_handle_issues_zero_ledger_calls(self, ledger, binder, records):
        """Test a record without a storage handle fails before any ledger call."""
        engine = CurationEngine(binder, records)

        with pytest.raises(PreconditionError):
            await engine.upvote(_record(storage_handle=None), VOTER)

        assert ledger.executed == []
        assert ledger.reads == 0

    @pytest.mark.asyncio
    async def test_no_handle_never_reaches_binder(self):
        """Test the binder is not invoked at all."""
        binder = MagicMock()
        binder.extend_lifespan = AsyncMock()
        engine = CurationEngine(binder, MagicMock())

        with pytest.raises(PreconditionError):
            await engine.upvote(_record(storage_handle=None), VOTER)

        binder.extend_lifespan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upvote_reconciles_with_ledger(self, ledger, storage, binder, records):
        """Test a confirmed upvote returns the re-fetched record."""
        handle = storage.put_raw("blob-1", b"{}")
        record_id = ledger.add_record(storage_handle=handle, upvote_count=3)
        record = await records.get_record(record_id)
        engine = CurationEngine(binder, records)

        outcome = await engine.upvote(record, VOTER)

        assert outcome.tentative.upvote_count == 4
        assert outcome.record.upvote_count == 4
        assert outcome.reconciled is True
        upvote_call = ledger.executed[0].calls[0]
        assert upvote_call.function == "upvote_shame"
        assert upvote_call.arguments[2].value == 1

    @pytest.mark.asyncio
    async def test_concurrent_upvotes_overwrite_guess(self, ledger, storage, binder, records):
        """Test upvotes landing from others show up after reconciliation."""
        handle = storage.put_raw("blob-1", b"{}")
        record_id = ledger.add_record(storage_handle=handle, upvote_count=3)
        record = await records.get_record(record_id)
        ledger.record_fields(record_id)["upvote_count"] = "7"
        engine = CurationEngine(binder, records)

        outcome = await engine.upvote(record, VOTER)

        assert outcome.tentative.upvote_count == 4
        assert outcome.record.upvote_count == 8

    @pytest.mark.asyncio
    async def test_refetch_failure_keeps_tentative(self):
        """Test a failed re-read falls back to the tentative record."""
        binder = MagicMock()
        binder.extend_lifespan = AsyncMock(return_value=MagicMock(digest="d1"))
        reader = MagicMock(spec=RecordReader)
        reader.get_record = AsyncMock(side_effect=TransportError("timeout"))
        engine = CurationEngine(binder, reader)

        outcome = await engine.upvote(_record(upvote_count=3), VOTER)

        assert outcome.record.upvote_count == 4
        assert outcome.reconciled is False
        binder.extend_lifespan.assert_awaited_once_with("0x1", "0x99", 1, VOTER)

    @pytest.mark.asyncio
    async def test_rejected_upvote_skips_refetch(self):
        """Test a rejected transaction propagates without a re-read."""
        binder = MagicMock()
        binder.extend_lifespan = AsyncMock(side_effect=LedgerError("EInsufficientPayment"))
        reader = MagicMock(spec=RecordReader)
        reader.get_record = AsyncMock()
        engine = CurationEngine(binder, reader)

        with pytest.raises(LedgerError, match="EInsufficientPayment"):
            await engine.upvote(_record(), VOTER)

        reader.get_record.assert_not_awaited()
