"""
Civil-day boundaries.

A "day" is the span a calendar date covers on the wall clock of a given
timezone, not a fixed 24-hour UTC slice: around DST transitions it lasts
23 or 25 hours, and its start almost never coincides with UTC midnight.

All instants returned here are timezone-aware and expressed in UTC.
"""

from __future__ import annotations

import datetime
from zoneinfo import ZoneInfo

UTC = datetime.timezone.utc


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name (raises ``ZoneInfoNotFoundError`` if unknown)."""
    return ZoneInfo(name)


def parse_day(value: str | datetime.date) -> datetime.date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(value)


def today(zone: ZoneInfo) -> datetime.date:
    """Current calendar date on the wall clock of ``zone``."""
    return datetime.datetime.now(zone).date()


def local_midnight(day: datetime.date, zone: datetime.tzinfo) -> datetime.datetime:
    """The instant at which the local calendar turns to ``day``.

    Midnight may not exist (clocks jump 00:00 -> 01:00) or may occur twice
    (clocks fall back 01:00 -> 00:00). ``fold=0`` resolves both to the
    first instant that belongs to ``day``: the transition itself in a gap,
    the earlier reading in a fold.
    """
    return datetime.datetime.combine(day, datetime.time.min, tzinfo=zone).astimezone(UTC)


def day_bounds(day: str | datetime.date, zone: datetime.tzinfo) -> tuple[datetime.datetime, datetime.datetime]:
    """Half-open ``[start, end)`` instant range of a civil day in ``zone``."""
    day = parse_day(day)
    return local_midnight(day, zone), local_midnight(day + datetime.timedelta(days=1), zone)


def contains(bounds: tuple[datetime.datetime, datetime.datetime], instant: datetime.datetime) -> bool:
    start, end = bounds
    return start <= instant < end


def multi_day(end_day: str | datetime.date, days: int) -> list[datetime.date]:
    """The ``days`` calendar dates ending at ``end_day``, newest first.

    Walks back one calendar day at a time so the result never depends on
    how many hours a given day lasted.
    """
    end_day = parse_day(end_day)
    return [end_day - datetime.timedelta(days=offset) for offset in range(days)]


def to_local(instant: datetime.datetime, zone: datetime.tzinfo) -> datetime.datetime:
    """Wall-clock reading of ``instant`` in ``zone`` (naive instants are UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(zone)
