"""
Quest period arithmetic.

Periods are half-open [start, end) ranges of UTC calendar days: a calendar
month for MONTHLY quests and an ISO week (Monday start) for WEEKLY ones.
"""

from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple


class Period(NamedTuple):
    start: date
    end: date  # exclusive

    @property
    def inclusive_end(self) -> date:
        return self.end - timedelta(days=1)


def utc_today(now: datetime | None = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def month_period(now: datetime | None = None) -> Period:
    today = utc_today(now)
    start = today.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return Period(start, end)


def iso_week_period(now: datetime | None = None) -> Period:
    today = utc_today(now)
    start = today - timedelta(days=today.weekday())
    return Period(start, start + timedelta(days=7))


def period_for(cadence: str, now: datetime | None = None) -> Period:
    if cadence == "MONTHLY":
        return month_period(now)
    return iso_week_period(now)
