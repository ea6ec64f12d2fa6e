"""
Tests for post record parsing and reads.
"""

import pytest

from hallofshame.ledger.records import RecordReader, parse_post_record
from hallofshame.models import UNTITLED

from tests.doubles import AUTHOR, record_object


# ==================== parse_post_record Tests ====================


class TestParsePostRecord:
    """Tests for parse_post_record."""

    def test_full_record(self):
        """Test every field is mapped."""
        data = record_object(
            "0x1",
            title="Acme Corp Overcharges",
            blob_id="blob-xyz",
            storage_handle="0x99",
            timestamp=1_700_000_123_000,
            upvote_count=3,
            total_value_locked="1100000000",
        )

        record = parse_post_record(data)

        assert record.id == "0x1"
        assert record.title == "Acme Corp Overcharges"
        assert record.content_address == "blob-xyz"
        assert record.storage_handle == "0x99"
        assert record.author == AUTHOR
        assert record.created_at == 1_700_000_123_000
        assert record.upvote_count == 3
        assert record.total_burnt == 1_100_000_000

    def test_missing_title_is_untitled(self):
        """Test a record without a title field renders as Untitled."""
        record = parse_post_record(record_object("0x1", title=None))

        assert record is not None
        assert record.title == UNTITLED

    def test_missing_storage_handle_still_displays(self):
        """Test a record without a handle parses but cannot be extended."""
        record = parse_post_record(record_object("0x1", storage_handle=None))

        assert record.storage_handle is None
        assert record.can_extend is False

    def test_shared_blob_id_field(self):
        """Test the alternative storage handle field name."""
        record = parse_post_record(
            record_object("0x1", storage_handle="0x77", handle_field="shared_blob_id")
        )

        assert record.storage_handle == "0x77"

    def test_byte_vector_fields(self):
        """Test title and blob id stored as byte vectors."""
        record = parse_post_record(
            record_object("0x1", title=list(b"Bytes title"), blob_id=list(b"blob-bytes"))
        )

        assert record.title == "Bytes title"
        assert record.content_address == "blob-bytes"

    def test_total_burnt_field(self):
        """Test total_burnt is read when total_value_locked is absent."""
        record = parse_post_record(record_object("0x1", total_burnt="100000000"))

        assert record.total_burnt == 100_000_000

    def test_missing_blob_id_is_not_a_record(self):
        """Test objects without a content address are skipped."""
        assert parse_post_record(record_object("0x1", blob_id=None)) is None

    @pytest.mark.parametrize("blob_id", [[300, 1], ["a", "b"], [-1]])
    def test_malformed_byte_vector_is_skipped(self, blob_id):
        """Test a blob_id byte vector that cannot be decoded skips the record."""
        assert parse_post_record(record_object("0x1", blob_id=blob_id)) is None

    def test_bad_timestamp_is_skipped(self):
        """Test malformed numeric fields skip the record rather than raise."""
        data = record_object("0x1")
        data["content"]["fields"]["timestamp"] = "yesterday"

        assert parse_post_record(data) is None

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"objectId": "0x1", "content": {"dataType": "package"}},
            {"objectId": "0x1", "content": {"dataType": "moveObject", "fields": None}},
        ],
    )
    def test_non_records(self, data):
        """Test non-record objects parse to None."""
        assert parse_post_record(data) is None

    def test_dynamic_field_wrapper(self):
        """Test a record stored as a dynamic field value is unwrapped."""
        inner = record_object("0xrecord")["content"]["fields"]
        data = {
            "objectId": "0xwrapper",
            "content": {
                "dataType": "moveObject",
                "fields": {"id": {"id": "0xwrapper"}, "name": "0xrecord", "value": {"fields": inner}},
            },
        }

        record = parse_post_record(data)

        assert record.id == "0xrecord"


# ==================== RecordReader Tests ====================


class TestRecordReader:
    """Tests for RecordReader."""

    @pytest.mark.asyncio
    async def test_get_record(self, ledger, records):
        """Test fetching one record."""
        record_id = ledger.add_record(title="One", upvote_count=2)

        record = await records.get_record(record_id)

        assert record.id == record_id
        assert record.upvote_count == 2

    @pytest.mark.asyncio
    async def test_get_record_unknown(self, records):
        """Test an unknown id returns None."""
        assert await records.get_record("0x404") is None

    @pytest.mark.asyncio
    async def test_get_records_skips_invalid(self, ledger, records):
        """Test unresolvable ids are returned as skipped."""
        good = ledger.add_record()
        broken = ledger.add_record(blob_id=None)

        found, skipped = await records.get_records([good, "0x404", broken])

        assert [r.id for r in found] == [good]
        assert skipped == ["0x404", broken]

    @pytest.mark.asyncio
    async def test_get_records_empty(self, ledger, records):
        """Test no ids means no ledger reads."""
        assert await records.get_records([]) == ([], [])
        assert ledger.reads == 0
