# src/lawdesk/core/clock.py

from __future__ import annotations

from datetime import date, datetime


class SystemClock:
    """Wall clock returning timezone-aware local time."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


def as_local(dt: datetime) -> datetime:
    """
    Normalize a timestamp to an aware local datetime.

    Naive values are interpreted as local time, so naive and aware timestamps
    can be compared and sorted together.
    """
    return dt.astimezone()


def local_day(dt: datetime) -> date:
    return as_local(dt).date()
