"""
Curation: upvote-driven lifespan extension.
"""

from .engine import (
    CurationEngine,
    UpvoteOutcome,
    apply_tentative_upvote,
    epochs_owed,
    reconcile_record,
)

__all__ = [
    "CurationEngine",
    "UpvoteOutcome",
    "apply_tentative_upvote",
    "epochs_owed",
    "reconcile_record",
]
