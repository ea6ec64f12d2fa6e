"""
Tests for canonical content encoding and decoding.
"""

import hashlib
import json

import pytest

from hallofshame.encoding import (
    build_content,
    canonical_json,
    content_digest,
    decode_content,
    encode_content,
    encode_post,
)
from hallofshame.errors import ContentParseError, ValidationError
from hallofshame.models import PostContent


# ==================== Encoding Tests ====================


class TestEncodeContent:
    """Tests for encode_content."""

    def test_encoding_is_deterministic(self):
        """Test that identical input yields byte-identical output."""
        first = encode_content("Acme Corp Overcharges", "They billed me twice.", ["img-a"])
        second = encode_content("Acme Corp Overcharges", "They billed me twice.", ["img-a"])

        assert first == second

    def test_canonical_layout(self):
        """Test sorted keys and compact separators."""
        payload = encode_content("T", "body")

        assert payload == b'{"content":"body","title":"T"}'

    def test_images_included_when_present(self):
        """Test images appear in order under the images key."""
        payload = encode_content("T", "b", ["one", "two"])

        assert payload == b'{"content":"b","images":["one","two"],"title":"T"}'

    def test_whitespace_is_trimmed(self):
        """Test surrounding whitespace does not change the bytes."""
        assert encode_content("  T \n", "\tbody  ") == encode_content("T", "body")

    def test_unicode_is_not_escaped(self):
        """Test text is emitted as UTF-8 rather than ASCII escapes."""
        payload = encode_content("Café", "naïve")

        assert "Café".encode() in payload
        assert b"\\u" not in payload

    def test_encode_post_matches_encode_content(self):
        """Test encoding a built PostContent matches encoding raw fields."""
        content = PostContent(title="T", content="body", images=["x"])

        assert encode_post(content) == encode_content("T", "body", ["x"])


class TestBuildContentValidation:
    """Tests for input validation."""

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_rejected(self, title):
        """Test a blank title fails validation."""
        with pytest.raises(ValidationError, match="Title"):
            build_content(title, "body")

    @pytest.mark.parametrize("body", ["", " \n "])
    def test_empty_body_rejected(self, body):
        """Test a blank body fails validation."""
        with pytest.raises(ValidationError, match="Content"):
            build_content("Title", body)

    def test_too_many_images_rejected(self):
        """Test more than four images fails validation."""
        with pytest.raises(ValidationError, match="At most 4"):
            build_content("Title", "body", ["a", "b", "c", "d", "e"])

    def test_four_images_allowed(self):
        """Test exactly four images is accepted."""
        content = build_content("Title", "body", ["a", "b", "c", "d"])

        assert len(content.images) == 4

    def test_title_length_limit(self):
        """Test a title over 200 characters fails validation."""
        build_content("x" * 200, "body")
        with pytest.raises(ValidationError, match="200"):
            build_content("x" * 201, "body")

    def test_empty_image_rejected(self):
        """Test an empty image payload fails validation."""
        with pytest.raises(ValidationError, match="Image 1"):
            build_content("Title", "body", ["ok", ""])


class TestContentDigest:
    """Tests for content_digest."""

    def test_sha256_hex(self):
        """Test the digest is the hex SHA-256 of the payload."""
        assert content_digest(b"abc") == hashlib.sha256(b"abc").hexdigest()
        assert len(content_digest(b"")) == 64

    def test_canonical_json_digest_stable(self):
        """Test key order in the source dict does not change the digest."""
        a = canonical_json({"title": "t", "content": "c"})
        b = canonical_json({"content": "c", "title": "t"})

        assert content_digest(a) == content_digest(b)


# ==================== Decoding Tests ====================


class TestDecodeContent:
    """Tests for decode_content."""

    def test_decode_encoded_content(self):
        """Test decoding returns the original fields."""
        content = decode_content(encode_content("Title", "Body text", ["img"]))

        assert content.title == "Title"
        assert content.body == "Body text"
        assert content.images == ["img"]

    def test_missing_images_defaults_empty(self):
        """Test a document without images decodes with none."""
        content = decode_content(b'{"title":"t","content":"c"}')

        assert content.images == []

    def test_missing_title_tolerated(self):
        """Test older documents without a title still decode."""
        content = decode_content(json.dumps({"content": "only body"}).encode())

        assert content.title == ""
        assert content.body == "only body"

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"\xff\xfe\x00",
            b'["a", "list"]',
            b'{"title": 1, "content": "c"}',
            b'{"title": "t", "content": "c", "images": "img"}',
            b'{"title": "t", "content": "c", "images": [1]}',
        ],
    )
    def test_invalid_documents_raise_parse_error(self, payload):
        """Test malformed bytes raise ContentParseError."""
        with pytest.raises(ContentParseError):
            decode_content(payload)
