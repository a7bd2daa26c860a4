"""--if-fresh gate: only nudge sessions that were just created."""

from __future__ import annotations

from datetime import datetime

from townhall.common.constants import IF_FRESH_MAX_AGE


def is_fresh(created_at: datetime, now: datetime | None = None) -> bool:
    """True when the session is at most IF_FRESH_MAX_AGE old (inclusive)."""
    if now is None:
        now = datetime.now(created_at.tzinfo)
    return now - created_at <= IF_FRESH_MAX_AGE
