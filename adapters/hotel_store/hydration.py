"""
StayLedger Storage Boundary - Record Hydration
================================================
Converts loosely-typed documents from the persistent store into the
typed entities the engines work with.

Dates arrive in several raw forms and are re-parsed here:
- date / datetime objects
- ISO 8601 strings (date or datetime)
- timestamp maps {"seconds": ..., "nanoseconds": ...} or {"_seconds": ...}
- epoch numbers in milliseconds

A nested record whose dates cannot be recovered is dropped with a
warning; its siblings still load. A top-level document that cannot
be recovered returns None.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

from django.utils.dateparse import parse_date, parse_datetime

from core.config import to_decimal
from engines.hotel_services.models import ServiceRequest, ServiceRequestStatus
from engines.hotel_stay.models import (
    OutOfOrderBlock,
    Room,
    RoomStatus,
    Stay,
    StayStatus,
)
from engines.inventory.models import InventoryItem, MovementType, StockMovement

logger = logging.getLogger("stayledger.hydration")


class HydrationError(ValueError):
    pass


# ══════════════════════════════════════════════════════════════
# VALUE PARSERS
# ══════════════════════════════════════════════════════════════

def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Best-effort conversion to an aware UTC datetime; None if hopeless."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, Mapping):
        seconds = raw.get("seconds", raw.get("_seconds"))
        if seconds is None:
            return None
        nanos = raw.get("nanoseconds", raw.get("_nanoseconds")) or 0
        try:
            return datetime.fromtimestamp(
                float(seconds) + float(nanos) / 1e9, tz=timezone.utc
            )
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(raw, str):
        text = raw.strip()
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                day = parse_date(text)
                return parse_timestamp(day) if day else None
        except ValueError:
            return None
        return parse_timestamp(parsed)
    return None


def parse_calendar_date(raw: Any) -> Optional[date]:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    parsed = parse_timestamp(raw)
    return parsed.date() if parsed else None


def _money(raw: Any, field_name: str) -> Decimal:
    if raw is None or raw == "":
        return Decimal(0)
    try:
        return to_decimal(raw, field_name)
    except ValueError:
        raise HydrationError(f"{field_name} is not a number: {raw!r}")


def _optional_money(raw: Any, field_name: str) -> Optional[Decimal]:
    if raw is None or raw == "":
        return None
    return _money(raw, field_name)


def _int(raw: Any, field_name: str, default: int = 0) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(Decimal(str(raw)))
    except (ArithmeticError, ValueError):
        raise HydrationError(f"{field_name} is not an integer: {raw!r}")


# ══════════════════════════════════════════════════════════════
# STATUS MAPS
# ══════════════════════════════════════════════════════════════

_STAY_STATUS = {
    "booked": StayStatus.RESERVED,
    "master": StayStatus.RESERVED,
    "reserved": StayStatus.RESERVED,
    "checked in": StayStatus.CHECKED_IN,
    "checked_in": StayStatus.CHECKED_IN,
    "checked out": StayStatus.CHECKED_OUT,
    "checked_out": StayStatus.CHECKED_OUT,
    "cancelled": StayStatus.CANCELLED,
}

_ROOM_STATUS = {
    "available": RoomStatus.AVAILABLE,
    "occupied": RoomStatus.OCCUPIED,
    "cleaning": RoomStatus.CLEANING,
    "out of order": RoomStatus.OUT_OF_ORDER,
    "out_of_order": RoomStatus.OUT_OF_ORDER,
    "waiting for check-in": RoomStatus.WAITING_FOR_CHECK_IN,
    "waiting_for_check_in": RoomStatus.WAITING_FOR_CHECK_IN,
    "reserved": RoomStatus.RESERVED,
}

_REQUEST_STATUS = {
    "pending": ServiceRequestStatus.PENDING,
    "in progress": ServiceRequestStatus.IN_PROGRESS,
    "in_progress": ServiceRequestStatus.IN_PROGRESS,
    "completed": ServiceRequestStatus.COMPLETED,
}

_MOVEMENT_TYPE = {
    "restock": MovementType.RESTOCK,
    "consumption": MovementType.CONSUMPTION,
    "adjustment": MovementType.ADJUSTMENT,
}


def _lookup(table: dict, raw: Any, default):
    if raw is None:
        return default
    return table.get(str(raw).strip().lower(), default)


# ══════════════════════════════════════════════════════════════
# DOCUMENT HYDRATORS
# ══════════════════════════════════════════════════════════════

def hydrate_stay(room_id: str, data: Mapping[str, Any]) -> Stay:
    if not isinstance(data, Mapping):
        raise HydrationError(f"stay entry is not a record: {data!r}")
    stay_id = data.get("stayId") or data.get("id")
    if not stay_id:
        raise HydrationError("stay has no id")
    check_in = parse_calendar_date(data.get("checkInDate"))
    check_out = parse_calendar_date(data.get("checkOutDate"))
    if check_in is None or check_out is None:
        raise HydrationError(f"stay {stay_id} has unreadable dates")
    master = data.get("groupMasterStayId") or None
    return Stay(
        stay_id=str(stay_id),
        room_id=room_id,
        check_in_date=check_in,
        check_out_date=check_out,
        room_charge=_money(data.get("roomCharge"), "roomCharge"),
        paid_amount=_money(data.get("paidAmount"), "paidAmount"),
        guest_name=data.get("guestName") or "",
        guest_number=data.get("guestNumber") or None,
        status=_lookup(_STAY_STATUS, data.get("status"), StayStatus.RESERVED),
        is_group_booking=bool(data.get("isGroupBooking")),
        group_master_stay_id=master,
        is_primary_in_group=bool(data.get("isPrimaryInGroup")),
        is_billed_to_company=bool(data.get("isBilledToCompany")),
    )


def hydrate_room(doc_id: str, data: Mapping[str, Any]) -> Room:
    if not isinstance(data, Mapping):
        raise HydrationError(f"room {doc_id} is not a record")
    status = _lookup(_ROOM_STATUS, data.get("status"), RoomStatus.AVAILABLE)
    room = Room(
        room_id=doc_id,
        number=str(data.get("number") or doc_id),
        category=data.get("type") or data.get("category") or "",
        status=status,
    )
    # a cleaning room's top-level checkOutDate is the day it became dirty
    if status is RoomStatus.CLEANING:
        room.last_checkout_date = parse_calendar_date(data.get("checkOutDate"))
    for raw_stay in data.get("stays") or []:
        try:
            room.add_stay(hydrate_stay(doc_id, raw_stay))
        except (HydrationError, ValueError) as exc:
            logger.warning(f"Room {room.number}: skipping stay ({exc})")
    for raw_block in data.get("outOfOrderBlocks") or []:
        if not isinstance(raw_block, Mapping):
            logger.warning(f"Room {room.number}: skipping malformed out-of-order block")
            continue
        start = parse_calendar_date(raw_block.get("from"))
        end = parse_calendar_date(raw_block.get("to"))
        if start is None or end is None or end < start:
            logger.warning(f"Room {room.number}: skipping unreadable out-of-order block")
            continue
        room.out_of_order_blocks.append(OutOfOrderBlock(
            from_date=start, to_date=end, reason=raw_block.get("reason") or "",
        ))
    return room


def hydrate_service_request(doc_id: str, data: Mapping[str, Any]) -> ServiceRequest:
    created = parse_timestamp(data.get("creationTime"))
    if created is None:
        raise HydrationError(f"service request {doc_id} has no creation time")
    return ServiceRequest(
        request_id=doc_id,
        room_number=str(data.get("roomNumber") or ""),
        service=data.get("service") or "",
        creation_time=created,
        stay_id=data.get("stayId") or None,
        price=_optional_money(data.get("price"), "price"),
        status=_lookup(_REQUEST_STATUS, data.get("status"), ServiceRequestStatus.PENDING),
        completion_time=parse_timestamp(data.get("completionTime")),
        staff=data.get("staff") or "",
        assigned_to=data.get("assignedTo") or None,
        category=data.get("category") or "",
        quantity=_int(data.get("quantity"), "quantity", default=1),
        is_manual_charge=bool(data.get("isManualCharge")),
        created_by=data.get("createdBy") or None,
        archived=bool(data.get("archived")),
    )


def hydrate_inventory_item(doc_id: str, data: Mapping[str, Any]) -> InventoryItem:
    return InventoryItem(
        item_id=doc_id,
        name=data.get("name") or doc_id,
        stock=_int(data.get("stock"), "stock"),
        par_level=_int(data.get("parLevel"), "parLevel"),
        unit=data.get("unit") or "",
        category=data.get("category") or "",
    )


def hydrate_stock_movement(doc_id: str, data: Mapping[str, Any]) -> StockMovement:
    movement_type = _lookup(_MOVEMENT_TYPE, data.get("type"), None)
    if movement_type is None:
        raise HydrationError(f"stock movement {doc_id} has unknown type {data.get('type')!r}")
    timestamp = parse_timestamp(data.get("date"))
    if timestamp is None:
        raise HydrationError(f"stock movement {doc_id} has no readable date")
    return StockMovement(
        movement_id=doc_id,
        item_id=str(data.get("itemId") or ""),
        movement_type=movement_type,
        quantity=_int(data.get("quantity"), "quantity"),
        timestamp=timestamp,
        note=data.get("notes") or "",
        item_name=data.get("itemName") or "",
    )
