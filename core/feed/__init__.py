"""
StayLedger Change Feed - Public API
=====================================
Realtime snapshots and incremental updates from the persistent store.
"""

from core.feed.errors import (
    DuplicateSubscriptionError,
    FeedError,
    UnavailableError,
)
from core.feed.feed import (
    CHECKOUT_HISTORY,
    HOTEL_COLLECTIONS,
    INVENTORY,
    ROOMS,
    SERVICE_REQUESTS,
    STOCK_MOVEMENTS,
    ChangeFeed,
    FeedUpdate,
    InMemoryChangeFeed,
    Subscription,
    UpdateKind,
)

__all__ = [
    "FeedError",
    "UnavailableError",
    "DuplicateSubscriptionError",
    "ChangeFeed",
    "InMemoryChangeFeed",
    "FeedUpdate",
    "Subscription",
    "UpdateKind",
    "ROOMS",
    "SERVICE_REQUESTS",
    "INVENTORY",
    "STOCK_MOVEMENTS",
    "CHECKOUT_HISTORY",
    "HOTEL_COLLECTIONS",
]
