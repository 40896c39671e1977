"""
StayLedger Stay Engine - Projection Store + Service
=====================================================
Lifecycle of rooms, stays and out-of-order blocks.

Stay state machine:
    RESERVED -> CHECKED_IN -> CHECKED_OUT
    RESERVED | CHECKED_IN -> CANCELLED
Terminal stays are archived to checkout history and removed
from their room.

Date rules:
- A stay occupies the nights [check_in, check_out)
- An out-of-order block occupies [from_date, to_date] inclusive
- Active stays on one room never share a night
- A stay may sit on an out-of-order block only with an explicit override
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from threading import RLock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.checkout_history import ArchivedStay, CheckoutArchive
from core.config import SettingsProvider, to_decimal
from core.time import Clock, DateRange, get_default_clock
from engines.hotel_folio.services import FinalBill, compute_final_bill
from engines.hotel_services.commands import CreateServiceRequest
from engines.hotel_services.models import ServiceRequest
from engines.hotel_services.services import ServiceRequestLedger
from engines.hotel_stay.commands import (
    CheckOutRequest,
    ClubStaysRequest,
    CreateGroupBookingRequest,
    CreateStayRequest,
    ExtendStayRequest,
    MarkOutOfOrderRequest,
    RegisterRoomRequest,
)
from engines.hotel_stay.errors import (
    InvalidGroupError,
    InvalidTransitionError,
    OutstandingBalanceError,
    OverlapError,
    UnknownRecordError,
)
from engines.hotel_stay.events import (
    ROOM_OUT_OF_ORDER_CLEARED_V1,
    ROOM_REGISTERED_V1,
    ROOM_SET_OUT_OF_ORDER_V1,
    STAY_CANCELLED_V1,
    STAY_CHECKED_IN_V1,
    STAY_CHECKED_OUT_V1,
    STAY_CREATED_V1,
    STAY_EXTENDED_V1,
    STAY_PAYMENT_RECORDED_V1,
    STAYS_CLUBBED_V1,
    build_out_of_order_payload,
    build_payment_recorded_payload,
    build_room_registered_payload,
    build_stay_created_payload,
    build_stay_extended_payload,
    build_stay_status_payload,
    build_stays_clubbed_payload,
)
from engines.hotel_stay.models import (
    OutOfOrderBlock,
    Room,
    RoomStatus,
    Stay,
    StayStatus,
)
from engines.hotel_stay.policies import (
    block_must_not_overlap_stays_policy,
    group_membership_must_match_policy,
    nights_must_not_overlap_blocks_policy,
    nights_must_not_overlap_stays_policy,
    stay_transition_must_be_allowed_policy,
)

logger = logging.getLogger("stayledger.stays")

CLEANING_SERVICE_NAME = "Post-Checkout Cleaning"
CLEANING_STAFF = "Housekeeping"
CLEANING_CATEGORY = "Housekeeping Services"
SYSTEM_ACTOR = "system"


# ══════════════════════════════════════════════════════════════
# PROJECTION STORE
# ══════════════════════════════════════════════════════════════

class HotelStayProjectionStore:
    """
    In-memory projection of rooms for one hotel.
    Rooms own their stays and blocks; events mutate them in place.
    """

    def __init__(self):
        self._lock = RLock()
        self._events: List[dict] = []
        self._rooms:  Dict[str, Room] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        with self._lock:
            self._events.append({"event_type": event_type, "payload": payload})
            self._apply(event_type, payload)

    def _apply(self, event_type: str, payload: dict) -> None:
        if event_type == ROOM_REGISTERED_V1:
            self._rooms[payload["room_id"]] = Room(
                room_id=payload["room_id"],
                number=payload["number"],
                category=payload["category"],
            )
            return

        room = self._rooms.get(payload["room_id"]) if "room_id" in payload else None

        if event_type == STAY_CREATED_V1:
            if room is None:
                return
            room.add_stay(Stay(
                stay_id=payload["stay_id"],
                room_id=room.room_id,
                check_in_date=payload["check_in_date"],
                check_out_date=payload["check_out_date"],
                room_charge=payload["room_charge"],
                paid_amount=payload["paid_amount"],
                guest_name=payload["guest_name"],
                guest_number=payload["guest_number"],
                is_billed_to_company=payload["is_billed_to_company"],
            ))

        elif event_type == STAY_EXTENDED_V1:
            stay = room.get_stay(payload["stay_id"]) if room else None
            if stay:
                stay.check_out_date = payload["new_check_out_date"]

        elif event_type == STAYS_CLUBBED_V1:
            master_id = payload["master_stay_id"]
            for placement in payload["stays"]:
                target = self._rooms.get(placement["room_id"])
                stay = target.get_stay(placement["stay_id"]) if target else None
                if stay:
                    stay.is_group_booking = True
                    stay.group_master_stay_id = master_id
                    stay.is_primary_in_group = stay.stay_id == master_id

        elif event_type == STAY_CHECKED_IN_V1:
            stay = room.get_stay(payload["stay_id"]) if room else None
            if stay:
                stay.status = StayStatus.CHECKED_IN
                room.status = RoomStatus.OCCUPIED

        elif event_type == STAY_PAYMENT_RECORDED_V1:
            stay = room.get_stay(payload["stay_id"]) if room else None
            if stay:
                stay.paid_amount += payload["amount"]

        elif event_type == STAY_CHECKED_OUT_V1:
            stay = room.remove_stay(payload["stay_id"]) if room else None
            if stay:
                stay.status = StayStatus.CHECKED_OUT
                room.status = RoomStatus.CLEANING
                room.last_checkout_date = payload["at"]

        elif event_type == STAY_CANCELLED_V1:
            stay = room.remove_stay(payload["stay_id"]) if room else None
            if stay:
                was_in_room = stay.status is StayStatus.CHECKED_IN
                stay.status = StayStatus.CANCELLED
                if was_in_room:
                    room.status = RoomStatus.CLEANING
                    room.last_checkout_date = payload["at"]

        elif event_type == ROOM_SET_OUT_OF_ORDER_V1:
            if room:
                room.out_of_order_blocks.append(OutOfOrderBlock(
                    from_date=payload["from_date"],
                    to_date=payload["to_date"],
                    reason=payload["reason"],
                ))

        elif event_type == ROOM_OUT_OF_ORDER_CLEARED_V1:
            if room:
                room.out_of_order_blocks = [
                    b for b in room.out_of_order_blocks
                    if (b.from_date, b.to_date)
                    != (payload["from_date"], payload["to_date"])
                ]

    # ── hydration ─────────────────────────────────────────────

    def load_rooms(self, rooms: Iterable[Room]) -> None:
        with self._lock:
            self._rooms = {r.room_id: r for r in rooms}

    def upsert_room(self, room: Room) -> None:
        with self._lock:
            self._rooms[room.room_id] = room

    def remove_room(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.pop(room_id, None)

    # ── queries ───────────────────────────────────────────────

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return sorted(self._rooms.values(), key=lambda r: r.number)

    def find_stay(self, stay_id: str) -> Optional[Tuple[Room, Stay]]:
        for room in self.list_rooms():
            stay = room.get_stay(stay_id)
            if stay is not None:
                return room, stay
        return None

    def list_group(self, master_stay_id: str) -> List[Stay]:
        return [
            s for room in self.list_rooms() for s in room.stays
            if s.group_master_stay_id == master_stay_id
        ]

    def list_arrivals(self, day: date) -> List[Stay]:
        return [
            s for room in self.list_rooms() for s in room.stays
            if s.status is StayStatus.RESERVED and s.check_in_date == day
        ]

    def list_departures(self, day: date) -> List[Stay]:
        return [
            s for room in self.list_rooms() for s in room.stays
            if s.status is StayStatus.CHECKED_IN and s.check_out_date == day
        ]

    @property
    def event_count(self) -> int:
        return len(self._events)


# ══════════════════════════════════════════════════════════════
# READ HELPERS
# ══════════════════════════════════════════════════════════════

def find_overlap_conflicts(room: Room) -> List[dict]:
    """
    Pairs of active stays on one room that share a night.

    Such pairs only arrive through hydrated data. They are reported
    as data-quality warnings; a pair where one stay sits on an
    out-of-order block is marked as such.
    """
    conflicts = []
    stays = [s for s in room.active_stays() if s.night_range is not None]
    for i, first in enumerate(stays):
        for second in stays[i + 1:]:
            if not first.night_range.overlaps(second.night_range):
                continue
            on_block = any(
                block.date_range.overlaps(s.night_range)
                for block in room.out_of_order_blocks
                for s in (first, second)
            )
            conflicts.append({
                "room_id":      room.room_id,
                "stay_ids":     (first.stay_id, second.stay_id),
                "out_of_order": on_block,
            })
    return conflicts


def room_display_status(room: Room, today: date) -> RoomStatus:
    """Out of order > occupied > cleaning > waiting > reserved > base."""
    if any(b.date_range.contains(today) for b in room.out_of_order_blocks):
        return RoomStatus.OUT_OF_ORDER
    if any(s.status is StayStatus.CHECKED_IN for s in room.stays):
        return RoomStatus.OCCUPIED
    if room.last_checkout_date == today:
        return RoomStatus.CLEANING
    reserved = [s for s in room.stays if s.status is StayStatus.RESERVED]
    if any(s.check_in_date == today for s in reserved):
        return RoomStatus.WAITING_FOR_CHECK_IN
    if any(s.check_out_date > today for s in reserved):
        return RoomStatus.RESERVED
    return room.status


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class CheckOutOutcome(Enum):
    CHECKED_OUT = "CHECKED_OUT"
    ALREADY_CHECKED_OUT = "ALREADY_CHECKED_OUT"


@dataclass(frozen=True)
class CheckOutResult:
    outcome: CheckOutOutcome
    stay_id: str
    final_bill: Optional[FinalBill] = None
    archived: Optional[ArchivedStay] = None
    cleaning_request: Optional[ServiceRequest] = None


class HotelStayService:
    def __init__(self, *, projection_store: HotelStayProjectionStore,
                 service_ledger: ServiceRequestLedger,
                 settings_provider: SettingsProvider,
                 archive: CheckoutArchive,
                 clock: Optional[Clock] = None,
                 persist_event: Optional[Callable[[dict], None]] = None):
        self._projection    = projection_store
        self._ledger        = service_ledger
        self._settings      = settings_provider
        self._archive       = archive
        self._clock         = clock or get_default_clock()
        self._persist_event = persist_event

    def _execute(self, event_type: str, payload: dict) -> dict:
        event_data = {"event_type": event_type, "payload": payload}
        if self._persist_event is not None:
            self._persist_event(event_data)
        self._projection.apply(event_type, payload)
        return event_data

    def _require_room(self, room_id: str) -> Room:
        room = self._projection.get_room(room_id)
        if room is None:
            raise UnknownRecordError("room", room_id)
        return room

    def _require_stay(self, room: Room, stay_id: str) -> Stay:
        stay = room.get_stay(stay_id)
        if stay is None:
            raise UnknownRecordError("stay", stay_id)
        return stay

    def _check_transition(self, stay: Stay, requested: StayStatus) -> None:
        if stay_transition_must_be_allowed_policy(stay.status, requested):
            raise InvalidTransitionError(
                stay.stay_id, stay.status.value, requested.value
            )

    def _check_nights_free(self, room: Room, nights: Optional[DateRange], *,
                           exclude=(), allow_block_override=False) -> None:
        msg = nights_must_not_overlap_stays_policy(room, nights, exclude)
        if msg:
            raise OverlapError(room.room_id, msg)
        msg = nights_must_not_overlap_blocks_policy(room, nights)
        if msg:
            if not allow_block_override:
                raise OverlapError(room.room_id, msg)
            logger.warning(
                f"Room {room.number}: booking over out-of-order block ({msg})"
            )

    def _new_stay_id(self, room: Room) -> str:
        return f"{room.number}-{uuid.uuid4().hex[:6].upper()}"

    # ── rooms ─────────────────────────────────────────────────

    def register_room(self, req: RegisterRoomRequest) -> Room:
        if self._projection.get_room(req.room_id) is not None:
            raise ValueError(f"room '{req.room_id}' already registered.")
        self._execute(ROOM_REGISTERED_V1, build_room_registered_payload(req))
        logger.info(f"Room registered: {req.number} ({req.category or 'uncategorised'})")
        return self._projection.get_room(req.room_id)

    # ── stays ─────────────────────────────────────────────────

    def create_stay(self, req: CreateStayRequest) -> Stay:
        room = self._require_room(req.room_id)
        stay_id = req.stay_id or self._new_stay_id(room)
        if self._projection.find_stay(stay_id) is not None:
            raise ValueError(f"stay '{stay_id}' already exists.")
        nights = DateRange.nights(req.check_in_date, req.check_out_date)
        self._check_nights_free(
            room, nights, allow_block_override=req.allow_out_of_order_override
        )
        self._execute(STAY_CREATED_V1, build_stay_created_payload(req, stay_id))
        logger.info(
            f"Stay {stay_id} booked on room {room.number}: "
            f"{req.check_in_date} to {req.check_out_date}"
        )
        return room.get_stay(stay_id)

    def extend_stay(self, req: ExtendStayRequest) -> Stay:
        room = self._require_room(req.room_id)
        stay = self._require_stay(room, req.stay_id)
        if not stay.is_active:
            raise InvalidTransitionError(
                stay.stay_id, stay.status.value, "EXTENDED"
            )
        if req.new_check_out_date <= stay.check_in_date:
            raise ValueError("new check-out must be after check-in.")
        old_check_out = stay.check_out_date
        if req.new_check_out_date > old_check_out:
            added = DateRange(
                start=old_check_out,
                end=req.new_check_out_date - timedelta(days=1),
            )
            self._check_nights_free(room, added, exclude={stay.stay_id})
        self._execute(
            STAY_EXTENDED_V1, build_stay_extended_payload(req, old_check_out)
        )
        logger.info(
            f"Stay {stay.stay_id} check-out moved {old_check_out} -> "
            f"{req.new_check_out_date}"
        )
        return stay

    def club_stays(self, req: ClubStaysRequest) -> List[Stay]:
        placements: List[Tuple[Room, Stay]] = []
        for stay_id in [req.master_stay_id, *sorted(req.member_stay_ids)]:
            found = self._projection.find_stay(stay_id)
            if found is None:
                raise UnknownRecordError("stay", stay_id)
            room, stay = found
            existing = group_membership_must_match_policy(stay, req.master_stay_id)
            if existing:
                raise InvalidGroupError(stay_id, existing, req.master_stay_id)
            placements.append((room, stay))
        self._execute(STAYS_CLUBBED_V1, build_stays_clubbed_payload(
            req.master_stay_id,
            [(room.room_id, stay.stay_id) for room, stay in placements],
        ))
        logger.info(
            f"Clubbed {len(placements)} stays under master {req.master_stay_id}"
        )
        return [stay for _, stay in placements]

    def create_group_booking(self, req: CreateGroupBookingRequest) -> List[Stay]:
        nights = DateRange.nights(req.check_in_date, req.check_out_date)
        rooms = [self._require_room(a.room_id) for a in req.assignments]
        for room in rooms:
            self._check_nights_free(room, nights)

        stays = []
        for room, assignment in zip(rooms, req.assignments):
            stays.append(self.create_stay(CreateStayRequest(
                room_id=room.room_id,
                check_in_date=req.check_in_date,
                check_out_date=req.check_out_date,
                room_charge=assignment.room_charge,
                guest_name=assignment.guest_name or req.guest_name,
                guest_number=req.guest_number,
                is_billed_to_company=req.is_billed_to_company,
            )))

        if req.is_clubbed and len(stays) > 1:
            primary_room_id = req.primary_room_id or rooms[0].room_id
            master = next(s for s in stays if s.room_id == primary_room_id)
            self.club_stays(ClubStaysRequest(
                master_stay_id=master.stay_id,
                member_stay_ids=frozenset(s.stay_id for s in stays),
            ))
        return stays

    def check_in_stay(self, room_id: str, stay_id: str) -> Stay:
        room = self._require_room(room_id)
        stay = self._require_stay(room, stay_id)
        self._check_transition(stay, StayStatus.CHECKED_IN)
        self._execute(STAY_CHECKED_IN_V1, build_stay_status_payload(
            room_id, stay_id, self._clock.now_utc()
        ))
        logger.info(f"Stay {stay_id} checked in to room {room.number}")
        return stay

    def record_payment(self, room_id: str, stay_id: str, amount) -> Stay:
        room = self._require_room(room_id)
        stay = self._require_stay(room, stay_id)
        amount = to_decimal(amount, "amount")
        if amount <= 0:
            raise ValueError("payment amount must be positive.")
        if not stay.is_active:
            raise InvalidTransitionError(stay_id, stay.status.value, "PAYMENT")
        self._execute(STAY_PAYMENT_RECORDED_V1, build_payment_recorded_payload(
            room_id, stay_id, amount, self._clock.now_utc()
        ))
        return stay

    def check_out_stay(self, req: CheckOutRequest) -> CheckOutResult:
        room = self._require_room(req.room_id)
        stay = room.get_stay(req.stay_id)
        if stay is None:
            logger.info(f"Stay {req.stay_id} already checked out")
            return CheckOutResult(
                outcome=CheckOutOutcome.ALREADY_CHECKED_OUT, stay_id=req.stay_id
            )
        self._check_transition(stay, StayStatus.CHECKED_OUT)

        final_bill = compute_final_bill(
            stay, room,
            service_requests=self._ledger.list_for_stay(stay.stay_id),
            rates=self._settings.get_billing_rates(),
            discount=req.discount,
            payment_method=req.payment_method,
        )
        if final_bill.balance > 0 and not stay.is_billed_to_company:
            if not req.force:
                raise OutstandingBalanceError(stay.stay_id, final_bill.balance)
            logger.warning(
                f"Stay {stay.stay_id} forced out with balance {final_bill.balance}"
            )

        archived = self._archive_stay(
            room, stay, StayStatus.CHECKED_OUT, final_bill.to_dict()
        )
        today = self._clock.today()
        self._execute(STAY_CHECKED_OUT_V1, build_stay_status_payload(
            room.room_id, stay.stay_id, today,
            balance=final_bill.balance,
        ))
        cleaning = self._ledger.create_request(CreateServiceRequest(
            room_number=room.number,
            service=CLEANING_SERVICE_NAME,
            price=Decimal(0),
            staff=CLEANING_STAFF,
            category=CLEANING_CATEGORY,
            is_manual_charge=True,
            created_by=SYSTEM_ACTOR,
        ))
        logger.info(f"Stay {stay.stay_id} checked out of room {room.number}")
        return CheckOutResult(
            outcome=CheckOutOutcome.CHECKED_OUT,
            stay_id=stay.stay_id,
            final_bill=final_bill,
            archived=archived,
            cleaning_request=cleaning,
        )

    def cancel_stay(self, room_id: str, stay_id: str, reason: str = "") -> ArchivedStay:
        room = self._require_room(room_id)
        stay = self._require_stay(room, stay_id)
        self._check_transition(stay, StayStatus.CANCELLED)
        archived = self._archive_stay(
            room, stay, StayStatus.CANCELLED, {"reason": reason}
        )
        self._execute(STAY_CANCELLED_V1, build_stay_status_payload(
            room_id, stay_id, self._clock.today(), reason=reason
        ))
        logger.info(f"Stay {stay_id} cancelled: {reason or 'no reason given'}")
        return archived

    def _archive_stay(self, room: Room, stay: Stay, status: StayStatus,
                      final_bill: dict) -> ArchivedStay:
        # requests are frozen only once the archive write has succeeded
        live = [r for r in self._ledger.list_for_stay(stay.stay_id) if not r.archived]
        record = ArchivedStay(
            stay_id=stay.stay_id,
            room_number=room.number,
            room_type=room.category,
            guest_name=stay.guest_name,
            status=status.value,
            check_in_date=stay.check_in_date,
            check_out_date=stay.check_out_date,
            archived_at=self._clock.now_utc(),
            final_bill=final_bill,
            service_request_ids=tuple(r.request_id for r in live),
        )
        self._archive.archive(record)
        self._ledger.archive_for_stay(stay.stay_id)
        return record

    # ── out of order ──────────────────────────────────────────

    def mark_out_of_order(self, req: MarkOutOfOrderRequest) -> OutOfOrderBlock:
        room = self._require_room(req.room_id)
        block = DateRange(start=req.from_date, end=req.to_date)
        msg = block_must_not_overlap_stays_policy(room, block)
        if msg:
            if not req.force:
                raise OverlapError(room.room_id, msg)
            logger.warning(
                f"Room {room.number} forced out of order over an active stay: {msg}"
            )
        self._execute(ROOM_SET_OUT_OF_ORDER_V1, build_out_of_order_payload(
            room.room_id, req.from_date, req.to_date, req.reason
        ))
        logger.info(f"Room {room.number} out of order {req.from_date} to {req.to_date}")
        return room.out_of_order_blocks[-1]

    def clear_out_of_order(self, room_id: str, from_date: date, to_date: date) -> bool:
        room = self._require_room(room_id)
        if not any((b.from_date, b.to_date) == (from_date, to_date)
                   for b in room.out_of_order_blocks):
            return False
        self._execute(ROOM_OUT_OF_ORDER_CLEARED_V1, build_out_of_order_payload(
            room_id, from_date, to_date
        ))
        logger.info(f"Room {room.number} out-of-order block cleared")
        return True

    # ── queries ───────────────────────────────────────────────

    def display_status(self, room_id: str) -> RoomStatus:
        return room_display_status(self._require_room(room_id), self._clock.today())

    def overlap_warnings(self) -> List[dict]:
        warnings = []
        for room in self._projection.list_rooms():
            for conflict in find_overlap_conflicts(room):
                logger.warning(
                    f"Room {room.number}: stays {conflict['stay_ids']} overlap"
                )
                warnings.append(conflict)
        return warnings
