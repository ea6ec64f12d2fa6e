"""
Display helpers for feed entries.
"""

from datetime import UTC, datetime

from ..models import UNTITLED

MIST_PER_SUI = 1_000_000_000


def display_title(title: str | None) -> str:
    if title is None or not title.strip():
        return UNTITLED
    return title.strip()


def short_address(address: str) -> str:
    """Abbreviate a ledger address as `0x1234...abcd`."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_age(timestamp_ms: int, now: datetime | None = None) -> str:
    """
    Human-readable age of a ledger timestamp.

    Under a week reads as "N minutes/hours/days ago"; older timestamps
    fall back to the calendar date.
    """
    now = now or datetime.now(UTC)
    created = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    seconds = int((now - created).total_seconds())

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if seconds < 86400:
        hours = seconds // 3600
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if seconds < 7 * 86400:
        days = seconds // 86400
        return f"{days} day{'s' if days != 1 else ''} ago"
    return created.strftime("%b %d, %Y")


def format_sui(amount_mist: int) -> str:
    """MIST amount as SUI with four decimals."""
    return f"{amount_mist / MIST_PER_SUI:.4f}"
