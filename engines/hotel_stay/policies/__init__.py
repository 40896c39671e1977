"""
StayLedger Stay Engine - Policies
"""
from __future__ import annotations

from typing import Container, Optional

from core.time import DateRange
from engines.hotel_stay.models import ALLOWED_STAY_TRANSITIONS, Room, StayStatus


def stay_dates_must_be_ordered_policy(check_in, check_out) -> Optional[str]:
    if check_out <= check_in:
        return f"check-out {check_out} must be after check-in {check_in}."
    return None


def nights_must_not_overlap_stays_policy(
    room: Room, nights: Optional[DateRange], exclude: Container[str] = ()
) -> Optional[str]:
    """Active stays on the same room may not share a night."""
    if nights is None:
        return None
    for stay in room.active_stays():
        if stay.stay_id in exclude:
            continue
        occupied = stay.night_range
        if occupied is not None and occupied.overlaps(nights):
            return (f"stay '{stay.stay_id}' occupies {stay.check_in_date} "
                    f"to {stay.check_out_date}.")
    return None


def nights_must_not_overlap_blocks_policy(
    room: Room, nights: Optional[DateRange]
) -> Optional[str]:
    if nights is None:
        return None
    for block in room.out_of_order_blocks:
        if block.date_range.overlaps(nights):
            return (f"room is out of order from {block.from_date} "
                    f"to {block.to_date}.")
    return None


def block_must_not_overlap_stays_policy(
    room: Room, block: DateRange
) -> Optional[str]:
    return nights_must_not_overlap_stays_policy(room, block)


def stay_transition_must_be_allowed_policy(
    current: StayStatus, requested: StayStatus
) -> Optional[str]:
    if requested not in ALLOWED_STAY_TRANSITIONS[current]:
        return f"{current.value} cannot move to {requested.value}."
    return None


def group_membership_must_match_policy(stay, master_stay_id: str) -> Optional[str]:
    existing = stay.group_master_stay_id
    if existing and existing != master_stay_id:
        return existing
    return None
