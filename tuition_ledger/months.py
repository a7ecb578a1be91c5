"""Month-key arithmetic shared by the tuition and lending engines.

A month key is a zero-padded ``YYYY-MM`` string, so plain string
comparison orders month keys chronologically.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Iterator


def _to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def month_key(value: date | datetime) -> str:
    """Return the ``YYYY-MM`` bucket for a date."""
    return f"{value.year}-{value.month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a month key into ``(year, month)``."""
    year, month = key.split("-")
    return int(year), int(month)


def date_from_month_key(key: str) -> date:
    """First day of the month a key names."""
    year, month = parse_month_key(key)
    return date(year, month, 1)


def next_month_key(key: str) -> str:
    """Return the month key following ``key``."""
    year, month = parse_month_key(key)
    if month == 12:
        return f"{year + 1}-01"
    return f"{year}-{month + 1:02d}"


def iter_month_keys(first: str, stop: str) -> Iterator[str]:
    """Yield month keys from ``first`` up to but excluding ``stop``."""
    current = first
    while current < stop:
        yield current
        current = next_month_key(current)


def months_between(start: date | datetime, end: date | datetime) -> list[str]:
    """Months strictly after ``start``'s month and strictly before ``end``'s.

    Neither the joining month nor the ongoing month is ever included.

    Examples
    --------
    >>> months_between(date(2024, 1, 20), date(2024, 4, 2))
    ['2024-02', '2024-03']
    """
    first = next_month_key(month_key(start))
    return list(iter_month_keys(first, month_key(end)))


def elapsed_months(start: date | datetime, end: date | datetime | None = None) -> int:
    """Count whole calendar months elapsed from ``start`` to ``end``.

    The plain month difference is reduced by one when ``end``'s day of
    month has not yet reached ``start``'s. Never negative. ``end``
    defaults to today.
    """
    start_day = _to_date(start)
    end_day = _to_date(end) if end is not None else date.today()

    total = (end_day.year - start_day.year) * 12 + (end_day.month - start_day.month)
    if end_day.day < start_day.day:
        total -= 1
    return max(0, total)


def format_month_key(key: str) -> str:
    """Render a month key for display, e.g. ``"January 2024"``.

    Keys that cannot be parsed are returned unchanged.
    """
    try:
        year, month = parse_month_key(key)
    except ValueError:
        return key
    if not 1 <= month <= 12:
        return key
    return f"{calendar.month_name[month]} {year}"
