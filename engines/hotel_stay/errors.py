"""
StayLedger Stay Engine - Errors
=================================
Lifecycle operations raise these; policies produce the messages.
"""

from __future__ import annotations

from decimal import Decimal


class HotelStayError(Exception):
    """Base error for room and stay lifecycle operations."""
    pass


class OverlapError(HotelStayError):
    """Requested date range conflicts with a stay or block on the room."""

    def __init__(self, room_id: str, detail: str):
        self.room_id = room_id
        self.detail = detail
        super().__init__(f"Date conflict on room '{room_id}': {detail}")


class InvalidGroupError(HotelStayError):
    """A stay already belongs to a different clubbed group."""

    def __init__(self, stay_id: str, existing_master_id: str, requested_master_id: str):
        self.stay_id = stay_id
        self.existing_master_id = existing_master_id
        self.requested_master_id = requested_master_id
        super().__init__(
            f"Stay '{stay_id}' already belongs to group "
            f"'{existing_master_id}', cannot join '{requested_master_id}'."
        )


class InvalidTransitionError(HotelStayError):
    def __init__(self, stay_id: str, current: str, requested: str):
        self.stay_id = stay_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Stay '{stay_id}' cannot move from {current} to {requested}."
        )


class UnknownRecordError(HotelStayError, LookupError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found.")


class OutstandingBalanceError(HotelStayError):
    """Checkout refused while the guest still owes money."""

    def __init__(self, stay_id: str, balance: Decimal):
        self.stay_id = stay_id
        self.balance = balance
        super().__init__(
            f"Stay '{stay_id}' has an outstanding balance of {balance}; "
            f"settle it, bill it to a company, or force the checkout."
        )
