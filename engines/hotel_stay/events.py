"""
StayLedger Stay Engine - Event Types and Payload Builders
===========================================================
Engine: hotel_stay
Scope:  Rooms, their stays and out-of-order blocks. Every lifecycle
        mutation is recorded as one of these events and applied to
        the projection store.
"""
from __future__ import annotations

ROOM_REGISTERED_V1            = "hotel.room.registered.v1"
STAY_CREATED_V1               = "hotel.stay.created.v1"
STAY_EXTENDED_V1              = "hotel.stay.extended.v1"
STAYS_CLUBBED_V1              = "hotel.stay.clubbed.v1"
STAY_CHECKED_IN_V1            = "hotel.stay.checked_in.v1"
STAY_PAYMENT_RECORDED_V1      = "hotel.stay.payment_recorded.v1"
STAY_CHECKED_OUT_V1           = "hotel.stay.checked_out.v1"
STAY_CANCELLED_V1             = "hotel.stay.cancelled.v1"
ROOM_SET_OUT_OF_ORDER_V1      = "hotel.room.out_of_order_set.v1"
ROOM_OUT_OF_ORDER_CLEARED_V1  = "hotel.room.out_of_order_cleared.v1"

HOTEL_STAY_EVENT_TYPES = (
    ROOM_REGISTERED_V1, STAY_CREATED_V1, STAY_EXTENDED_V1,
    STAYS_CLUBBED_V1, STAY_CHECKED_IN_V1, STAY_PAYMENT_RECORDED_V1,
    STAY_CHECKED_OUT_V1, STAY_CANCELLED_V1,
    ROOM_SET_OUT_OF_ORDER_V1, ROOM_OUT_OF_ORDER_CLEARED_V1,
)


def build_room_registered_payload(req) -> dict:
    return {
        "room_id":  req.room_id,
        "number":   req.number,
        "category": req.category,
    }


def build_stay_created_payload(req, stay_id: str) -> dict:
    return {
        "room_id":              req.room_id,
        "stay_id":              stay_id,
        "check_in_date":        req.check_in_date,
        "check_out_date":       req.check_out_date,
        "room_charge":          req.room_charge,
        "paid_amount":          req.paid_amount,
        "guest_name":           req.guest_name,
        "guest_number":         req.guest_number,
        "is_billed_to_company": req.is_billed_to_company,
        "out_of_order_override": req.allow_out_of_order_override,
    }


def build_stay_extended_payload(req, old_check_out) -> dict:
    return {
        "room_id":            req.room_id,
        "stay_id":            req.stay_id,
        "old_check_out_date": old_check_out,
        "new_check_out_date": req.new_check_out_date,
    }


def build_stays_clubbed_payload(master_stay_id, placements) -> dict:
    """placements: list of (room_id, stay_id) for master and members."""
    return {
        "master_stay_id": master_stay_id,
        "stays": [
            {"room_id": room_id, "stay_id": stay_id}
            for room_id, stay_id in placements
        ],
    }


def build_stay_status_payload(room_id, stay_id, at, **extra) -> dict:
    return {"room_id": room_id, "stay_id": stay_id, "at": at, **extra}


def build_payment_recorded_payload(room_id, stay_id, amount, at) -> dict:
    return {"room_id": room_id, "stay_id": stay_id, "amount": amount, "at": at}


def build_out_of_order_payload(room_id, from_date, to_date, reason="") -> dict:
    return {
        "room_id":   room_id,
        "from_date": from_date,
        "to_date":   to_date,
        "reason":    reason,
    }
