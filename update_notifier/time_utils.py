"""
Shared datetime helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp and normalize it to UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def calendar_days_between(
    earlier: datetime,
    later: datetime,
    tz: Optional[tzinfo] = None,
) -> int:
    """Count calendar-day boundaries crossed going from ``earlier`` to ``later``.

    Both instants are compared as dates in ``tz``, the host's local timezone
    when omitted, so 23:50 -> 00:10 the next day counts as one day even though
    only twenty minutes elapsed. Naive datetimes are taken as UTC.
    """
    start = ensure_utc(earlier).astimezone(tz).date()
    end = ensure_utc(later).astimezone(tz).date()
    return (end - start).days
