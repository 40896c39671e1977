"""
StayLedger Checkout History - Public API
==========================================
Models are not imported here; they load with the Django app registry.
"""

from core.checkout_history.archive import (
    ArchivedStay,
    CheckoutArchive,
    DbCheckoutArchive,
    DuplicateArchiveError,
    InMemoryCheckoutArchive,
)

__all__ = [
    "ArchivedStay",
    "CheckoutArchive",
    "InMemoryCheckoutArchive",
    "DbCheckoutArchive",
    "DuplicateArchiveError",
]
