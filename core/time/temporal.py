"""
StayLedger Core Time - Calendar Helpers
=========================================
Pure functions over calendar days.
Stays are booked in whole nights: a stay occupies the half-open
range [check_in, check_out) while maintenance blocks and report
ranges are closed intervals [start, end].
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

DateLike = Union[date, datetime]


def as_calendar_date(value: DateLike) -> date:
    """Drop the time part of a datetime; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def calendar_day_difference(later: DateLike, earlier: DateLike) -> int:
    """Number of calendar-day boundaries between two points in time."""
    return (as_calendar_date(later) - as_calendar_date(earlier)).days


# ══════════════════════════════════════════════════════════════
# DATE RANGE - Closed interval [start, end] of calendar days
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """
    A closed interval of calendar days.

    Invariant: start <= end (enforced at construction).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_calendar_date(self.start))
        object.__setattr__(self, "end", as_calendar_date(self.end))
        if self.start > self.end:
            raise ValueError(
                f"DateRange start ({self.start}) must be <= end ({self.end})."
            )

    @classmethod
    def single(cls, day: DateLike) -> "DateRange":
        return cls(start=as_calendar_date(day), end=as_calendar_date(day))

    @classmethod
    def nights(cls, check_in: DateLike, check_out: DateLike) -> Optional["DateRange"]:
        """
        Closed range of nights slept for a [check_in, check_out) booking.

        Returns None when the booking covers no night at all.
        """
        first = as_calendar_date(check_in)
        last = as_calendar_date(check_out) - timedelta(days=1)
        if last < first:
            return None
        return cls(start=first, end=last)

    def contains(self, day: DateLike) -> bool:
        return self.start <= as_calendar_date(day) <= self.end

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end

    def days(self) -> Iterator[date]:
        """Yield every day in the range, inclusive of both ends."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1
