"""Business-day arithmetic for leave ranges.

All functions are pure. Weekends are Saturday and Sunday; holidays are not
modelled.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Union

from timeoff.common.constants import WEEKEND_DAYS

DateLike = Union[date, datetime]


def normalize_date(value: DateLike) -> date:
    """Drop any time-of-day component; ``datetime`` is a ``date`` subclass."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_business_day(day: DateLike) -> bool:
    return normalize_date(day).weekday() not in WEEKEND_DAYS


def iter_business_days(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield each Mon–Fri date in ``[start, end]``, inclusive on both ends."""
    current = normalize_date(start)
    last = normalize_date(end)
    while current <= last:
        if current.weekday() not in WEEKEND_DAYS:
            yield current
        current += timedelta(days=1)


def business_days_inclusive(start: DateLike, end: DateLike) -> int:
    """Count business days from *start* to *end* inclusive; 0 if end < start.

    >>> business_days_inclusive(date(2024, 1, 8), date(2024, 1, 12))
    5
    """
    first = normalize_date(start)
    last = normalize_date(end)
    if last < first:
        return 0

    total_days = (last - first).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5

    # Walk only the partial week left over
    weekday = first.weekday()
    for offset in range(remainder):
        if (weekday + offset) % 7 not in WEEKEND_DAYS:
            count += 1
    return count
