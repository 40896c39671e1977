"""
StayLedger Core Config - Public API
=====================================
Admin-configurable billing rates.
"""

from core.config.rules import (
    BillingRates,
    DjangoSettingsProvider,
    InMemorySettingsProvider,
    SettingsProvider,
    to_decimal,
)

__all__ = [
    "BillingRates",
    "SettingsProvider",
    "InMemorySettingsProvider",
    "DjangoSettingsProvider",
    "to_decimal",
]
