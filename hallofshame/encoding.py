"""
Canonical Content Encoding

Turns post content into deterministic bytes for upload. Identical input
always produces byte-identical output: keys are sorted, separators are
fixed, and text is emitted as UTF-8 without ASCII escaping.
"""

import hashlib
import json
from collections.abc import Sequence
from typing import Any

from .errors import ContentParseError, ValidationError
from .models import MAX_IMAGES, MAX_TITLE_LENGTH, PostContent


def build_content(title: str, body: str, images: Sequence[str] | None = None) -> PostContent:
    """
    Validate and normalize raw user input into PostContent.

    Title and body are trimmed; both must be non-empty afterwards.

    Raises:
        ValidationError: If title/body is empty, the title is too long,
            or more than MAX_IMAGES images are given.
    """
    title = (title or "").strip()
    body = (body or "").strip()
    images = list(images or [])

    if not title:
        raise ValidationError("Title must not be empty")
    if not body:
        raise ValidationError("Content must not be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title exceeds {MAX_TITLE_LENGTH} characters")
    if len(images) > MAX_IMAGES:
        raise ValidationError(f"At most {MAX_IMAGES} images are allowed, got {len(images)}")
    for index, image in enumerate(images):
        if not isinstance(image, str) or not image:
            raise ValidationError(f"Image {index} must be a non-empty string")

    return PostContent(title=title, content=body, images=images)


def canonical_json(document: dict[str, Any]) -> bytes:
    """Serialize a JSON document deterministically."""
    return json.dumps(
        document,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def encode_content(title: str, body: str, images: Sequence[str] | None = None) -> bytes:
    """Validate content and return its canonical bytes."""
    return canonical_json(build_content(title, body, images).to_wire())


def encode_post(content: PostContent) -> bytes:
    """Canonical bytes for already-built content (revalidated)."""
    return encode_content(content.title, content.body, content.images)


def content_digest(payload: bytes) -> str:
    """Hex SHA-256 of a payload; identifies a publish attempt's content."""
    return hashlib.sha256(payload).hexdigest()


def decode_content(payload: bytes) -> PostContent:
    """
    Parse fetched bytes into PostContent.

    Decoding is lenient about missing fields, because content written by
    older clients may omit `images` or even `title`, but strict about the
    document being a JSON object of strings.

    Raises:
        ContentParseError: If the bytes are not a valid content document.
    """
    try:
        document = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ContentParseError(f"Content is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ContentParseError("Content document must be a JSON object")

    title = document.get("title", "")
    body = document.get("content", "")
    images = document.get("images") or []

    if not isinstance(title, str) or not isinstance(body, str):
        raise ContentParseError("Content title and body must be strings")
    if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
        raise ContentParseError("Content images must be a list of strings")

    return PostContent(title=title, content=body, images=images)
