"""
StayLedger Service Requests - Request Commands
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.config import to_decimal


@dataclass(frozen=True)
class CreateServiceRequest:
    room_number: str
    service: str
    stay_id: Optional[str] = None
    price: Optional[Decimal] = None
    staff: str = ""
    assigned_to: Optional[str] = None
    category: str = ""
    quantity: int = 1
    is_manual_charge: bool = False
    created_by: Optional[str] = None
    request_id: Optional[str] = None

    def __post_init__(self):
        if not self.room_number: raise ValueError("room_number must be non-empty.")
        if not self.service:     raise ValueError("service must be non-empty.")
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("quantity must be >= 1.")
        if self.price is not None:
            price = to_decimal(self.price, "price")
            if price < 0:
                raise ValueError("price must be non-negative.")
            object.__setattr__(self, "price", price)
