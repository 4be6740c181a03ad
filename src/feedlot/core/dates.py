"""Calendar-day helpers shared by every engine component.

All engine arithmetic happens on ``datetime.date`` values. Anything carrying a
time-of-day (timestamps from the record store, epoch milliseconds) is
normalised to its calendar day first, so intervals never gain or lose a day
because of a timezone offset or a sub-day component.
"""

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta
from typing import NamedTuple


class DateInterval(NamedTuple):
    """Closed interval of calendar days."""

    start: date
    end: date

    @property
    def days(self) -> int:
        """Number of days in the interval, both ends included."""
        return days_between_inclusive(self.start, self.end)


def to_day(value: date | datetime | str | int | float | None) -> date | None:
    """Normalise a date-like value to a calendar day.

    Accepts dates, datetimes, ISO-8601 strings ("2026-01-15",
    "2026-01-15T08:30:00Z") and epoch milliseconds.

    Returns:
        The calendar day, or None if the value is empty or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def days_between(start: date, end: date) -> int:
    """Exclusive day difference (end - start). Negative when end is before start."""
    return (end - start).days


def days_between_inclusive(start: date, end: date) -> int:
    """Number of calendar days from start to end, both included.

    Returns 0 (never negative) when end is before start.
    """
    return max(0, (end - start).days + 1)


def intersect(start_a: date, end_a: date, start_b: date, end_b: date) -> DateInterval | None:
    """Overlap of two closed day intervals, or None if they do not overlap."""
    start = max(start_a, start_b)
    end = min(end_a, end_b)
    if start > end:
        return None
    return DateInterval(start, end)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day from start to end inclusive (nothing if end < start)."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
