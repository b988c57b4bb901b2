from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing Z is read as naive local time."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1]
    return datetime.fromisoformat(value).replace(tzinfo=None)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    # Millisecond precision matches what the document store keeps.
    return datetime.combine(d, time(23, 59, 59, 999000))


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    return start_of_day(date(year, month, 1)), end_of_day(date(year, month, last_day))


def shift_month(d: date, months: int) -> date:
    """First day of the month ``months`` away from ``d``'s month."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def trend_window(days: int, today: date) -> tuple[datetime, datetime]:
    """``[today - days, today]`` normalized to day boundaries."""
    return start_of_day(today - timedelta(days=days)), end_of_day(today)



def week_bounds(d: date) -> tuple[datetime, datetime]:
    """Monday through Sunday of ``d``'s week."""
    monday = d - timedelta(days=d.weekday())
    return start_of_day(monday), end_of_day(monday + timedelta(days=6))
