"""
StayLedger Core Config - Billing Rates
========================================
GST and service charge are admin-configured percentages.
They are never hardcoded in engine logic: engines ask a
SettingsProvider for the current BillingRates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from threading import Lock
from typing import Any, Mapping, Protocol

from django.conf import settings as django_settings

logger = logging.getLogger("stayledger.config")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert a number to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be numeric, got bool.")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric, got {value!r}.") from exc


# ══════════════════════════════════════════════════════════════
# BILLING RATES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BillingRates:
    """
    Percentage fees applied to a bill subtotal.

    Both rates are percentages in [0, 100]: 10 means 10%.
    """

    gst_rate: Decimal = Decimal(0)
    service_charge_rate: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        for name in ("gst_rate", "service_charge_rate"):
            rate = to_decimal(getattr(self, name), name)
            if not Decimal(0) <= rate <= Decimal(100):
                raise ValueError(f"{name} must be between 0 and 100, got {rate}.")
            object.__setattr__(self, name, rate)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BillingRates":
        """Build from a settings document (camelCase or upper-case keys)."""
        gst = data.get("gstRate", data.get("GST_RATE", 0))
        service = data.get("serviceChargeRate", data.get("SERVICE_CHARGE_RATE", 0))
        return cls(gst_rate=gst or 0, service_charge_rate=service or 0)

    def to_dict(self) -> dict:
        return {
            "gst_rate": str(self.gst_rate),
            "service_charge_rate": str(self.service_charge_rate),
        }


# ══════════════════════════════════════════════════════════════
# SETTINGS PROVIDER PROTOCOL
# ══════════════════════════════════════════════════════════════

class SettingsProvider(Protocol):
    """Process-wide source of billing rates, refreshable by admins."""

    def get_billing_rates(self) -> BillingRates:
        ...  # pragma: no cover

    def refresh(self) -> BillingRates:
        ...  # pragma: no cover


class InMemorySettingsProvider:
    """Settings held in memory; updated by administrative action."""

    def __init__(self, rates: BillingRates | None = None) -> None:
        self._rates = rates or BillingRates()
        self._lock = Lock()

    def get_billing_rates(self) -> BillingRates:
        with self._lock:
            return self._rates

    def update(self, rates: BillingRates) -> None:
        with self._lock:
            self._rates = rates
        logger.info(
            f"Billing rates updated: gst={rates.gst_rate}% "
            f"service_charge={rates.service_charge_rate}%"
        )

    def refresh(self) -> BillingRates:
        return self.get_billing_rates()


class DjangoSettingsProvider:
    """
    Reads rates from settings.HOTEL_BILLING.

    The value is cached until refresh() is called, so that a
    settings override made by an admin task becomes visible only
    when explicitly reloaded.
    """

    setting_name = "HOTEL_BILLING"

    def __init__(self) -> None:
        self._rates: BillingRates | None = None
        self._lock = Lock()

    def _load(self) -> BillingRates:
        raw = getattr(django_settings, self.setting_name, None) or {}
        return BillingRates.from_mapping(raw)

    def get_billing_rates(self) -> BillingRates:
        with self._lock:
            if self._rates is None:
                self._rates = self._load()
            return self._rates

    def refresh(self) -> BillingRates:
        rates = self._load()
        with self._lock:
            self._rates = rates
        logger.info(f"Billing rates reloaded from settings.{self.setting_name}")
        return rates
