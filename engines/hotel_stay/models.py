"""
StayLedger Stay Engine - Entities
===================================
Rooms own their stays and out-of-order blocks. A room's occupancy
on any day is derived from those collections, never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from core.config import to_decimal
from core.time import DateRange


class StayStatus(Enum):
    RESERVED = "RESERVED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (StayStatus.CHECKED_OUT, StayStatus.CANCELLED)


ACTIVE_STAY_STATUSES = frozenset({StayStatus.RESERVED, StayStatus.CHECKED_IN})

ALLOWED_STAY_TRANSITIONS = {
    StayStatus.RESERVED:    frozenset({StayStatus.CHECKED_IN, StayStatus.CANCELLED}),
    StayStatus.CHECKED_IN:  frozenset({StayStatus.CHECKED_OUT, StayStatus.CANCELLED}),
    StayStatus.CHECKED_OUT: frozenset(),
    StayStatus.CANCELLED:   frozenset(),
}


class RoomStatus(Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    CLEANING = "CLEANING"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    WAITING_FOR_CHECK_IN = "WAITING_FOR_CHECK_IN"
    RESERVED = "RESERVED"


@dataclass
class Stay:
    stay_id: str
    room_id: str
    check_in_date: date
    check_out_date: date
    room_charge: Decimal
    paid_amount: Decimal = Decimal(0)
    guest_name: str = ""
    guest_number: Optional[str] = None
    status: StayStatus = StayStatus.RESERVED
    is_group_booking: bool = False
    group_master_stay_id: Optional[str] = None
    is_primary_in_group: bool = False
    is_billed_to_company: bool = False

    def __post_init__(self):
        self.room_charge = to_decimal(self.room_charge, "room_charge")
        self.paid_amount = to_decimal(self.paid_amount or 0, "paid_amount")
        if self.room_charge < 0:
            raise ValueError("room_charge must be non-negative.")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STAY_STATUSES

    @property
    def night_range(self) -> Optional[DateRange]:
        """Closed range of nights occupied, None for a zero-night stay."""
        return DateRange.nights(self.check_in_date, self.check_out_date)

    @property
    def is_clubbed(self) -> bool:
        return self.is_group_booking and bool(self.group_master_stay_id)


@dataclass
class OutOfOrderBlock:
    from_date: date
    to_date: date
    reason: str = ""

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.from_date, end=self.to_date)


@dataclass
class Room:
    room_id: str
    number: str
    category: str = ""
    stays: List[Stay] = field(default_factory=list)
    out_of_order_blocks: List[OutOfOrderBlock] = field(default_factory=list)
    status: RoomStatus = RoomStatus.AVAILABLE
    last_checkout_date: Optional[date] = None

    def get_stay(self, stay_id: str) -> Optional[Stay]:
        for stay in self.stays:
            if stay.stay_id == stay_id:
                return stay
        return None

    def active_stays(self) -> List[Stay]:
        return [s for s in self.stays if s.is_active]

    def add_stay(self, stay: Stay) -> None:
        self.stays.append(stay)
        self.stays.sort(key=lambda s: (s.check_in_date, s.stay_id))

    def remove_stay(self, stay_id: str) -> Optional[Stay]:
        stay = self.get_stay(stay_id)
        if stay is not None:
            self.stays.remove(stay)
        return stay
