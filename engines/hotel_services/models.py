"""
StayLedger Service Requests - Entities
========================================
Guest service requests scoped to a stay. Price is optional:
a request without a price is valid and bills as zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.config import to_decimal


class ServiceRequestStatus(Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ServiceRequestStatus.PENDING: 0,
    ServiceRequestStatus.IN_PROGRESS: 1,
    ServiceRequestStatus.COMPLETED: 2,
}


@dataclass
class ServiceRequest:
    request_id: str
    room_number: str
    service: str
    creation_time: datetime
    stay_id: Optional[str] = None
    price: Optional[Decimal] = None
    status: ServiceRequestStatus = ServiceRequestStatus.PENDING
    completion_time: Optional[datetime] = None
    staff: str = ""
    assigned_to: Optional[str] = None
    category: str = ""
    quantity: int = 1
    is_manual_charge: bool = False
    created_by: Optional[str] = None
    archived: bool = False

    def __post_init__(self):
        if self.price is not None:
            self.price = to_decimal(self.price, "price")

    @property
    def billable_amount(self) -> Decimal:
        return self.price if self.price is not None else Decimal(0)
