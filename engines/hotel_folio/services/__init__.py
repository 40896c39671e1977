"""
StayLedger Billing - Bill Summary and Final Bill
==================================================
Pure functions over a snapshot of rooms, service requests and rates.

Bill summary for a stay:
1. Resolve the billing group (clubbed stays across all rooms, else the stay)
2. nights = max(1, calendar day difference) per stay
3. room total = sum(room_charge * nights)
4. services total = sum(price) of requests owned by the group
5. subtotal = room total + services total
6. service charge and GST are each taken off the subtotal, never compounded
7. total with taxes = subtotal + service charge + GST
8. paid = sum(paid_amount) over the group
9. balance = total with taxes - paid

Missing stay or room yields a zero summary instead of an error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from core.config import BillingRates, SettingsProvider, to_decimal
from core.time import calendar_day_difference
from engines.hotel_services.models import ServiceRequest
from engines.hotel_stay.models import Room, Stay

logger = logging.getLogger("stayledger.billing")

ZERO = Decimal(0)
HUNDRED = Decimal(100)


# ══════════════════════════════════════════════════════════════
# BILL SUMMARY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BillSummary:
    stay_ids: tuple
    total_room_charge: Decimal
    total_services_charge: Decimal
    subtotal: Decimal
    service_charge_amount: Decimal
    gst_amount: Decimal
    total_with_taxes: Decimal
    total_paid: Decimal
    current_balance: Decimal

    @classmethod
    def empty(cls) -> "BillSummary":
        return cls(
            stay_ids=(),
            total_room_charge=ZERO,
            total_services_charge=ZERO,
            subtotal=ZERO,
            service_charge_amount=ZERO,
            gst_amount=ZERO,
            total_with_taxes=ZERO,
            total_paid=ZERO,
            current_balance=ZERO,
        )

    @property
    def is_group(self) -> bool:
        return len(self.stay_ids) > 1


def nights_for_stay(stay: Stay) -> int:
    """Billable nights; same-day or backwards ranges still bill one night."""
    return max(1, calendar_day_difference(stay.check_out_date, stay.check_in_date))


def resolve_billing_group(stay: Stay, rooms: Iterable[Room]) -> List[Stay]:
    if not stay.is_clubbed:
        return [stay]
    master_id = stay.group_master_stay_id
    group = [
        s for room in rooms for s in room.stays
        if s.group_master_stay_id == master_id
    ]
    # The stay may come from a detached snapshot that no room holds yet.
    if not any(s.stay_id == stay.stay_id for s in group):
        group.append(stay)
    return group


def get_bill_summary(
    stay: Optional[Stay],
    room: Optional[Room],
    *,
    rooms: Iterable[Room] = (),
    service_requests: Iterable[ServiceRequest] = (),
    rates: Optional[BillingRates] = None,
) -> BillSummary:
    if stay is None or room is None:
        return BillSummary.empty()
    rates = rates or BillingRates()

    all_rooms = list(rooms) or [room]
    group = resolve_billing_group(stay, all_rooms)
    group_ids = {s.stay_id for s in group}

    total_room_charge = sum(
        (s.room_charge * nights_for_stay(s) for s in group), ZERO
    )
    total_services_charge = sum(
        (r.billable_amount for r in service_requests if r.stay_id in group_ids),
        ZERO,
    )
    subtotal = total_room_charge + total_services_charge
    service_charge_amount = subtotal * rates.service_charge_rate / HUNDRED
    gst_amount = subtotal * rates.gst_rate / HUNDRED
    total_with_taxes = subtotal + service_charge_amount + gst_amount
    total_paid = sum((s.paid_amount for s in group), ZERO)

    return BillSummary(
        stay_ids=tuple(sorted(group_ids)),
        total_room_charge=total_room_charge,
        total_services_charge=total_services_charge,
        subtotal=subtotal,
        service_charge_amount=service_charge_amount,
        gst_amount=gst_amount,
        total_with_taxes=total_with_taxes,
        total_paid=total_paid,
        current_balance=total_with_taxes - total_paid,
    )


# ══════════════════════════════════════════════════════════════
# FINAL BILL (per stay, at checkout)
# ══════════════════════════════════════════════════════════════

class DiscountType(Enum):
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


@dataclass(frozen=True)
class Discount:
    discount_type: DiscountType
    value: Decimal

    def __post_init__(self):
        value = to_decimal(self.value, "discount value")
        if value < 0:
            raise ValueError("discount value must be non-negative.")
        if self.discount_type is DiscountType.PERCENT and value > HUNDRED:
            raise ValueError("percent discount must be <= 100.")
        object.__setattr__(self, "value", value)

    def amount_off(self, subtotal: Decimal) -> Decimal:
        if self.discount_type is DiscountType.PERCENT:
            return subtotal * self.value / HUNDRED
        return min(self.value, subtotal)


@dataclass(frozen=True)
class FinalBill:
    stay_id: str
    room_number: str
    nights: int
    room_charge: Decimal
    room_total: Decimal
    services: tuple
    services_total: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    service_charge_amount: Decimal
    gst_amount: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    balance: Decimal
    payment_method: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "stayId":              self.stay_id,
            "roomNumber":          self.room_number,
            "nights":              self.nights,
            "roomCharge":          str(self.room_charge),
            "roomTotal":           str(self.room_total),
            "services":            [
                {"requestId": rid, "service": name, "price": str(price)}
                for rid, name, price in self.services
            ],
            "servicesTotal":       str(self.services_total),
            "subtotal":            str(self.subtotal),
            "discountAmount":      str(self.discount_amount),
            "taxableAmount":       str(self.taxable_amount),
            "serviceChargeAmount": str(self.service_charge_amount),
            "gstAmount":           str(self.gst_amount),
            "grandTotal":          str(self.grand_total),
            "paidAmount":          str(self.paid_amount),
            "balance":             str(self.balance),
            "paymentMethod":       self.payment_method,
        }


def compute_final_bill(
    stay: Stay,
    room: Room,
    *,
    service_requests: Iterable[ServiceRequest] = (),
    rates: Optional[BillingRates] = None,
    discount: Optional[Discount] = None,
    payment_method: Optional[str] = None,
) -> FinalBill:
    rates = rates or BillingRates()
    nights = nights_for_stay(stay)
    room_total = stay.room_charge * nights
    owned = sorted(
        (r for r in service_requests if r.stay_id == stay.stay_id),
        key=lambda r: r.creation_time,
    )
    services_total = sum((r.billable_amount for r in owned), ZERO)
    subtotal = room_total + services_total
    discount_amount = discount.amount_off(subtotal) if discount else ZERO
    taxable = subtotal - discount_amount
    service_charge_amount = taxable * rates.service_charge_rate / HUNDRED
    gst_amount = taxable * rates.gst_rate / HUNDRED
    grand_total = taxable + service_charge_amount + gst_amount

    return FinalBill(
        stay_id=stay.stay_id,
        room_number=room.number,
        nights=nights,
        room_charge=stay.room_charge,
        room_total=room_total,
        services=tuple((r.request_id, r.service, r.billable_amount) for r in owned),
        services_total=services_total,
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable,
        service_charge_amount=service_charge_amount,
        gst_amount=gst_amount,
        grand_total=grand_total,
        paid_amount=stay.paid_amount,
        balance=grand_total - stay.paid_amount,
        payment_method=payment_method,
    )


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class HotelFolioService:
    """
    Binds billing to live stores.

    The stay store must provide find_stay(stay_id) -> (room, stay) | None
    and list_rooms(); the ledger must provide snapshot().
    """

    def __init__(self, *, projection_store, service_ledger,
                 settings_provider: SettingsProvider):
        self._projection = projection_store
        self._ledger     = service_ledger
        self._settings   = settings_provider

    def bill_summary(self, stay_id: str) -> BillSummary:
        found = self._projection.find_stay(stay_id)
        if found is None:
            logger.warning(f"Bill requested for unknown stay {stay_id}")
            return BillSummary.empty()
        room, stay = found
        return get_bill_summary(
            stay, room,
            rooms=self._projection.list_rooms(),
            service_requests=self._ledger.snapshot(),
            rates=self._settings.get_billing_rates(),
        )

    def final_bill(self, stay_id: str, *, discount: Optional[Discount] = None,
                   payment_method: Optional[str] = None) -> Optional[FinalBill]:
        found = self._projection.find_stay(stay_id)
        if found is None:
            return None
        room, stay = found
        return compute_final_bill(
            stay, room,
            service_requests=self._ledger.snapshot(),
            rates=self._settings.get_billing_rates(),
            discount=discount,
            payment_method=payment_method,
        )
