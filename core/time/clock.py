"""
StayLedger Core Time - Injectable Clock
=========================================
No datetime.now() inside engine logic.
Lifecycle operations, ledgers and display helpers read "now" and
"today" from a Clock so that every computation is reproducible
under test.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...  # pragma: no cover

    def today(self) -> date:
        """Return the current calendar day."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock backed by the system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now_utc().date()


class FixedClock:
    """
    Test clock returning a fixed timestamp.

    Usage:
        clock = FixedClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        assert clock.today() == date(2026, 3, 1)
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def today(self) -> date:
        return self._fixed_dt.date()

    def advance(self, seconds: float = 0, *, days: int = 0) -> None:
        """Move the fixed time forward (multi-step scenarios)."""
        self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds, days=days)


# ══════════════════════════════════════════════════════════════
# DEFAULT CLOCK (infrastructure use only)
# ══════════════════════════════════════════════════════════════

_default_clock: Clock = SystemClock()


def set_default_clock(clock: Clock) -> None:
    """Override the default clock (testing only)."""
    global _default_clock
    _default_clock = clock


def get_default_clock() -> Clock:
    return _default_clock

