"""
Time and date helpers for forecast windows.

Key concepts:
  - All persisted timestamps are timezone-aware UTC.
  - Forecast days are calendar dates in the *city's* local timezone, so
    "today" for Tokyo and for Honolulu can differ at the same UTC instant.
  - A forecast window of ``days`` covers ``today .. today + days - 1``,
    matching what the provider returns for ``forecast_days=days``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def resolve_timezone(tz_name: Optional[str]) -> timezone | ZoneInfo:
    """Return a tzinfo for an IANA zone name, falling back to UTC.

    Unknown or empty names (including the provider's ``"auto"``) resolve to
    UTC with a warning rather than failing the request.
    """
    if not tz_name or tz_name.upper() in ("UTC", "GMT", "AUTO"):
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Unknown timezone '%s'; using UTC.", tz_name)
        return timezone.utc


def local_today(now: datetime, tz_name: Optional[str]) -> date:
    """Return the calendar date of ``now`` in the given timezone.

    Args:
        now: Timezone-aware instant (naive values are assumed to be UTC).
        tz_name: IANA timezone name of the city.

    Returns:
        Local calendar date.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(resolve_timezone(tz_name)).date()


def date_window(start: date, days: int) -> tuple[date, date]:
    """Return the inclusive ``(first, last)`` dates of a ``days``-long window.

    Raises:
        ValueError: If ``days < 1``.
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}.")
    return start, start + timedelta(days=days - 1)


def to_utc_iso(dt: datetime) -> str:
    """Serialise a datetime as an ISO-8601 UTC string for storage."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string written by ``to_utc_iso`` (or SQLite ``strftime``)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
