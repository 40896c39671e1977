"""
StayLedger Occupancy Analytics
================================
Read-side computations over a snapshot of rooms.

Both functions are pure and recompute from scratch on every call;
callers re-invoke them whenever rooms, stays, blocks or the requested
range change. Nothing here is patched incrementally.

Per-day occupancy counts a room as occupied on day d when a stay's
nights [check_in, check_out - 1] contain d or an out-of-order block
contains d. The checkout day itself is free.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from core.time import DateRange
from engines.hotel_stay.models import Room, StayStatus


# ══════════════════════════════════════════════════════════════
# RANGE OCCUPANCY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OccupancyPoint:
    date: date
    occupancy_percent: float


@dataclass(frozen=True)
class OccupancyReport:
    series: Tuple[OccupancyPoint, ...]
    label: str

    @property
    def average_occupancy(self) -> float:
        if not self.series:
            return 0.0
        return sum(p.occupancy_percent for p in self.series) / len(self.series)


def occupancy_label(date_range: Optional[DateRange]) -> str:
    if date_range is None:
        return "Occupancy"
    if date_range.start == date_range.end:
        return f"Occupancy {date_range.start.isoformat()}"
    return f"Occupancy {date_range.start.isoformat()} to {date_range.end.isoformat()}"


def _room_occupied_on(room: Room, day: date, *, checked_in_only: bool = False) -> bool:
    for block in room.out_of_order_blocks:
        if block.date_range.contains(day):
            return True
    for stay in room.stays:
        if checked_in_only and stay.status is not StayStatus.CHECKED_IN:
            continue
        nights = stay.night_range
        if nights is not None and nights.contains(day):
            return True
    return False


def _percent(occupied: int, total: int) -> float:
    return occupied / total * 100 if total > 0 else 0.0


def compute_occupancy(rooms: Iterable[Room],
                      date_range: Optional[DateRange]) -> OccupancyReport:
    rooms = list(rooms or ())
    label = occupancy_label(date_range)
    if date_range is None:
        return OccupancyReport(series=(), label=label)
    series = []
    for day in date_range.days():
        occupied = sum(1 for room in rooms if _room_occupied_on(room, day))
        series.append(OccupancyPoint(date=day, occupancy_percent=_percent(occupied, len(rooms))))
    return OccupancyReport(series=tuple(series), label=label)


# ══════════════════════════════════════════════════════════════
# CATEGORY OCCUPANCY (single day, in-house guests only)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CategoryOccupancy:
    category: str
    total_rooms: int
    occupied_rooms: int
    occupancy_percent: float


@dataclass(frozen=True)
class CategoryOccupancyReport:
    day: date
    categories: Tuple[CategoryOccupancy, ...]
    overall: CategoryOccupancy

    def for_category(self, category: str) -> Optional[CategoryOccupancy]:
        for entry in self.categories:
            if entry.category == category:
                return entry
        return None


def category_occupancy(rooms: Iterable[Room], categories: Sequence[str],
                       day: date) -> CategoryOccupancyReport:
    """Reserved stays do not count; only checked-in guests and blocks do."""
    rooms = list(rooms or ())
    entries: List[CategoryOccupancy] = []
    for category in categories:
        in_category = [r for r in rooms if r.category == category]
        occupied = sum(
            1 for r in in_category if _room_occupied_on(r, day, checked_in_only=True)
        )
        entries.append(CategoryOccupancy(
            category=category,
            total_rooms=len(in_category),
            occupied_rooms=occupied,
            occupancy_percent=_percent(occupied, len(in_category)),
        ))
    total_occupied = sum(
        1 for r in rooms if _room_occupied_on(r, day, checked_in_only=True)
    )
    overall = CategoryOccupancy(
        category="All",
        total_rooms=len(rooms),
        occupied_rooms=total_occupied,
        occupancy_percent=_percent(total_occupied, len(rooms)),
    )
    return CategoryOccupancyReport(day=day, categories=tuple(entries), overall=overall)
