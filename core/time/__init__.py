"""
StayLedger Core Time - Public API
===================================
Injectable clock and calendar-day helpers.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    get_default_clock,
    set_default_clock,
)
from core.time.temporal import (
    DateRange,
    as_calendar_date,
    calendar_day_difference,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
    "DateRange",
    "as_calendar_date",
    "calendar_day_difference",
]
