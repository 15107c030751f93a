"""Pure calendar utilities - no I/O dependencies.

Days are ``date`` values in local time; instants are naive local
``datetime`` values.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .errors import InvalidRangeError

MONDAY = 1
SUNDAY = 0


@dataclass(frozen=True)
class Interval:
    """A closed time interval [start, end]."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidRangeError(self.start, self.end)

    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, dt: datetime) -> bool:
        """Check if an instant falls within this interval (inclusive)."""
        return self.start <= dt <= self.end

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def days(self) -> list[date]:
        return days_between(self.start, self.end)


def day_floor(instant: datetime | date) -> date:
    """Truncate an instant to its local calendar day."""
    if isinstance(instant, datetime):
        return instant.date()
    return instant


def start_of_day(instant: datetime | date) -> datetime:
    """Local midnight of the instant's day."""
    return datetime.combine(day_floor(instant), time.min)


def end_of_day(instant: datetime | date) -> datetime:
    """Last representable instant of the instant's day."""
    return datetime.combine(day_floor(instant), time.max)


def weekday_of(instant: datetime | date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    # date.weekday() is 0=Monday .. 6=Sunday
    return (instant.weekday() + 1) % 7


def days_between(start: datetime | date, end: datetime | date) -> list[date]:
    """
    Every calendar day from start to end, inclusive.

    Raises InvalidRangeError if end is before start.
    """
    if isinstance(start, datetime) and isinstance(end, datetime):
        inverted = end < start
    else:
        # datetime and date do not compare with each other
        inverted = day_floor(end) < day_floor(start)
    if inverted:
        raise InvalidRangeError(start, end)
    first = day_floor(start)
    last = day_floor(end)
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def overlaps(a: Interval, b: Interval) -> bool:
    """Inclusive-bounds intersection test."""
    return a.start <= b.end and b.start <= a.end


def within(day: datetime | date, interval: Interval) -> bool:
    """Check if a day falls inside an interval, compared at day granularity."""
    d = day_floor(day)
    return day_floor(interval.start) <= d <= day_floor(interval.end)


def make_interval(start: datetime | date, end: datetime | date) -> Interval:
    """Build an interval, widening bare dates to whole days."""
    if not isinstance(start, datetime):
        start = start_of_day(start)
    if not isinstance(end, datetime):
        end = end_of_day(end)
    return Interval(start, end)


def week_window(reference: datetime | date, week_starts_on: int = MONDAY) -> Interval:
    """The week containing reference, from start-of-day to end-of-day."""
    offset = (weekday_of(reference) - week_starts_on) % 7
    first = day_floor(reference) - timedelta(days=offset)
    return Interval(start_of_day(first), end_of_day(first + timedelta(days=6)))


def month_window(reference: datetime | date) -> Interval:
    """The calendar month containing reference."""
    first = day_floor(reference).replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return Interval(start_of_day(first), end_of_day(next_first - timedelta(days=1)))


def day_window(reference: datetime | date) -> Interval:
    """The single day containing reference."""
    return Interval(start_of_day(reference), end_of_day(reference))


_ISO_DAY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DMY_DAY = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


def parse_day(text: str) -> date:
    """
    Parse a user-entered day.

    Accepts YYYY-MM-DD or DD-MM-YYYY with a year in 1900-2100.
    Raises ValueError for anything else, including impossible dates.
    """
    text = text.strip()
    if m := _ISO_DAY.match(text):
        year, month, day = (int(g) for g in m.groups())
    elif m := _DMY_DAY.match(text):
        day, month, year = (int(g) for g in m.groups())
    else:
        raise ValueError(f"Unrecognised date: {text!r}")

    if not 1900 <= year <= 2100:
        raise ValueError(f"Year out of range: {year}")
    # date() rejects month 13, Feb 30 and friends
    return date(year, month, day)
