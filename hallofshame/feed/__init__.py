"""
Feed reconstruction and display.
"""

from .assembler import FeedAssembler
from .display import display_title, format_age, format_sui, short_address

__all__ = [
    "FeedAssembler",
    "display_title",
    "short_address",
    "format_age",
    "format_sui",
]
