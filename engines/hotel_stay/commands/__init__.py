"""
StayLedger Stay Engine - Request Commands
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from core.config import to_decimal
from core.time import as_calendar_date


def _require_date(obj, name: str) -> None:
    value = getattr(obj, name)
    if not isinstance(value, date):
        raise ValueError(f"{name} must be a date.")
    object.__setattr__(obj, name, as_calendar_date(value))


def _require_money(obj, name: str) -> None:
    value = to_decimal(getattr(obj, name), name)
    if value < 0:
        raise ValueError(f"{name} must be non-negative.")
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class RegisterRoomRequest:
    room_id:  str
    number:   str
    category: str = ""

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        if not self.number:  raise ValueError("number must be non-empty.")


@dataclass(frozen=True)
class CreateStayRequest:
    room_id:        str
    check_in_date:  date
    check_out_date: date
    room_charge:    Decimal
    guest_name:     str = ""
    guest_number:   Optional[str] = None
    paid_amount:    Decimal = Decimal(0)
    is_billed_to_company: bool = False
    allow_out_of_order_override: bool = False
    stay_id:        Optional[str] = None

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        _require_date(self, "check_in_date")
        _require_date(self, "check_out_date")
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date.")
        _require_money(self, "room_charge")
        _require_money(self, "paid_amount")


@dataclass(frozen=True)
class ExtendStayRequest:
    room_id:            str
    stay_id:            str
    new_check_out_date: date

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        if not self.stay_id: raise ValueError("stay_id must be non-empty.")
        _require_date(self, "new_check_out_date")


@dataclass(frozen=True)
class ClubStaysRequest:
    master_stay_id:  str
    member_stay_ids: FrozenSet[str]

    def __post_init__(self):
        if not self.master_stay_id:
            raise ValueError("master_stay_id must be non-empty.")
        members = frozenset(self.member_stay_ids) - {self.master_stay_id}
        if not members:
            raise ValueError("at least one member stay other than the master is required.")
        object.__setattr__(self, "member_stay_ids", members)


@dataclass(frozen=True)
class RoomAssignment:
    room_id:     str
    room_charge: Decimal
    guest_name:  str = ""

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        _require_money(self, "room_charge")


@dataclass(frozen=True)
class CreateGroupBookingRequest:
    check_in_date:   date
    check_out_date:  date
    assignments:     Tuple[RoomAssignment, ...]
    guest_name:      str = ""
    guest_number:    Optional[str] = None
    is_clubbed:      bool = False
    primary_room_id: Optional[str] = None
    is_billed_to_company: bool = False

    def __post_init__(self):
        _require_date(self, "check_in_date")
        _require_date(self, "check_out_date")
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date.")
        assignments = tuple(self.assignments)
        if not assignments:
            raise ValueError("at least one room assignment is required.")
        room_ids = [a.room_id for a in assignments]
        if len(set(room_ids)) != len(room_ids):
            raise ValueError("a room can appear only once in a group booking.")
        if self.primary_room_id is not None and self.primary_room_id not in room_ids:
            raise ValueError("primary_room_id must be one of the assigned rooms.")
        object.__setattr__(self, "assignments", assignments)


@dataclass(frozen=True)
class CheckOutRequest:
    room_id:        str
    stay_id:        str
    discount:       Optional[object] = None
    payment_method: Optional[str] = None
    force:          bool = False

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        if not self.stay_id: raise ValueError("stay_id must be non-empty.")


@dataclass(frozen=True)
class MarkOutOfOrderRequest:
    room_id:   str
    from_date: date
    to_date:   date
    reason:    str = ""
    force:     bool = False

    def __post_init__(self):
        if not self.room_id: raise ValueError("room_id must be non-empty.")
        _require_date(self, "from_date")
        _require_date(self, "to_date")
        if self.to_date < self.from_date:
            raise ValueError("to_date must not be before from_date.")
