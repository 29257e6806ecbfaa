from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Protocol


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (or HH:MM:SS) string into time."""
    v = value.strip()
    fmt = "%H:%M:%S" if v.count(":") == 2 else "%H:%M"
    return datetime.strptime(v, fmt).time()


def utc_now() -> datetime:
    """Current time in UTC.

    Note: Every "today" in the system is derived from UTC to avoid boundary mismatches.
    """
    return datetime.now(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    def now(self) -> datetime:
        return utc_now()


class FixedClock:
    """Clock that only moves when told to (tests, backfills)."""

    def __init__(self, current: datetime):
        self._current = as_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = as_utc(current)

    def advance(self, *, days: int = 0, minutes: int = 0) -> None:
        self._current = self._current + timedelta(days=days, minutes=minutes)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def today_utc(clock: Optional[Clock] = None) -> date:
    now = clock.now() if clock else utc_now()
    return as_utc(now).date()
