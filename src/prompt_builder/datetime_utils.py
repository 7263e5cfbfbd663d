"""
UTC timestamp helpers.

Entity timestamps cross the gateway boundary as ISO 8601 strings in the
`2025-01-01T00:00:00.000Z` form, so optimistic placeholders are stamped in
the same shape as the records the server returns.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(value: Optional[datetime] = None) -> str:
    """
    Render a datetime as a millisecond-precision UTC ISO 8601 string.

    Args:
        value: The datetime to format. When omitted, `now_utc()` is used.
            Naive datetimes are assumed to already be UTC.
    """
    dt = value or now_utc()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 string (accepting a trailing `Z`) into an aware datetime."""
    raw = value[:-1] + "+00:00" if value.endswith("Z") else value
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


__all__ = ["now_utc", "isoformat_utc", "parse_iso"]
