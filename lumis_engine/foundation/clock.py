"""Timezone-aware clock utilities.

Sessions, windows and unlock timestamps in lumis-engine are UTC-aware.
This module is the single source of "now" so tests can patch it.
"""

from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware datetimes pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_today() -> date:
    return utc_now().date()
