"""
StayLedger Change Feed - Realtime Snapshot Delivery
=====================================================
Models the persistent store's push-based listeners as an explicit
subscribe/unsubscribe feed.

Delivery behaviour:
1. A subscriber receives FeedUpdates for one hotel id
2. The first update per collection is a full SNAPSHOT
3. Later updates are ADDED / MODIFIED / REMOVED documents
4. Handler exceptions are caught and logged per subscriber
5. Remaining subscribers are still notified

Connection loss is reported through each subscription's error
callback with an UnavailableError. After reconnecting, the
publisher is expected to resend full snapshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from core.feed.errors import DuplicateSubscriptionError, UnavailableError

logger = logging.getLogger("stayledger.feed")


# ══════════════════════════════════════════════════════════════
# COLLECTIONS
# ══════════════════════════════════════════════════════════════

ROOMS = "rooms"
SERVICE_REQUESTS = "serviceRequests"
INVENTORY = "inventory"
STOCK_MOVEMENTS = "stockMovements"
CHECKOUT_HISTORY = "checkoutHistory"

HOTEL_COLLECTIONS = frozenset({
    ROOMS, SERVICE_REQUESTS, INVENTORY, STOCK_MOVEMENTS, CHECKOUT_HISTORY,
})


class UpdateKind(Enum):
    SNAPSHOT = "SNAPSHOT"
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    REMOVED = "REMOVED"


@dataclass(frozen=True)
class FeedUpdate:
    """
    One delivery from the persistent store.

    documents holds (document_id, data) pairs. For SNAPSHOT it is the
    complete collection; for REMOVED the data part may be empty.
    """

    hotel_id: str
    collection: str
    kind: UpdateKind
    documents: Tuple[Tuple[str, Mapping[str, Any]], ...] = ()

    def __post_init__(self) -> None:
        if not self.hotel_id:
            raise ValueError("hotel_id must be non-empty.")
        if self.collection not in HOTEL_COLLECTIONS:
            raise ValueError(
                f"collection must be one of {sorted(HOTEL_COLLECTIONS)}."
            )
        if not isinstance(self.kind, UpdateKind):
            raise ValueError("kind must be an UpdateKind.")
        object.__setattr__(self, "documents", tuple(
            (str(doc_id), dict(data or {})) for doc_id, data in self.documents
        ))


UpdateHandler = Callable[[FeedUpdate], None]
ErrorHandler = Callable[[UnavailableError], None]


@dataclass
class Subscription:
    hotel_id: str
    handler: UpdateHandler
    on_error: Optional[ErrorHandler] = None
    active: bool = True
    _feed: Optional["InMemoryChangeFeed"] = field(default=None, repr=False)

    def unsubscribe(self) -> None:
        if self._feed is not None:
            self._feed.unsubscribe(self)


class ChangeFeed(Protocol):
    def subscribe(
        self,
        hotel_id: str,
        handler: UpdateHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        ...  # pragma: no cover

    def unsubscribe(self, subscription: Subscription) -> None:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY FEED
# ══════════════════════════════════════════════════════════════

class InMemoryChangeFeed:
    """
    Reference feed used by tests and local tooling.

    publish() delivers synchronously on the caller's thread.
    Thread-safe subscription bookkeeping.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._connected = True
        self._lock = Lock()

    @property
    def connected(self) -> bool:
        return self._connected

    def subscribe(
        self,
        hotel_id: str,
        handler: UpdateHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {type(handler)}.")

        handler_name = getattr(handler, "__qualname__", str(handler))
        subscription = Subscription(
            hotel_id=hotel_id, handler=handler, on_error=on_error, _feed=self,
        )
        with self._lock:
            existing = self._subscriptions.setdefault(hotel_id, [])
            if any(s.handler == handler for s in existing):
                raise DuplicateSubscriptionError(hotel_id, handler_name)
            existing.append(subscription)

        logger.info(f"Feed subscriber registered: {handler_name} -> {hotel_id}")
        if not self._connected:
            self._notify_error(subscription, "feed is disconnected")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(subscription.hotel_id, [])
            if subscription in subs:
                subs.remove(subscription)
        subscription.active = False

    def subscriber_count(self, hotel_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(hotel_id, []))

    def _targets(self, hotel_id: str) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions.get(hotel_id, []))

    def publish(self, update: FeedUpdate) -> dict:
        """
        Deliver an update to every subscriber of its hotel.

        Never raises on handler failure; failures are reported in
        the returned summary.
        """
        if not self._connected:
            raise UnavailableError(update.hotel_id, "feed is disconnected")

        result = {"notified": 0, "failed": 0, "failures": []}
        for subscription in self._targets(update.hotel_id):
            handler_name = getattr(
                subscription.handler, "__qualname__", str(subscription.handler)
            )
            try:
                subscription.handler(update)
                result["notified"] += 1
            except Exception as exc:
                result["failed"] += 1
                result["failures"].append({
                    "handler": handler_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                })
                logger.exception(
                    f"Feed subscriber failed: {handler_name} for "
                    f"{update.collection}/{update.kind.value}"
                )
        return result

    def publish_snapshot(
        self, hotel_id: str, collection: str,
        documents: Mapping[str, Mapping[str, Any]],
    ) -> dict:
        return self.publish(FeedUpdate(
            hotel_id=hotel_id, collection=collection,
            kind=UpdateKind.SNAPSHOT, documents=tuple(documents.items()),
        ))

    def disconnect(self, reason: str = "connection lost") -> None:
        self._connected = False
        logger.warning(f"Change feed disconnected: {reason}")
        with self._lock:
            subs = [s for group in self._subscriptions.values() for s in group]
        for subscription in subs:
            self._notify_error(subscription, reason)

    def connect(self) -> None:
        self._connected = True
        logger.info("Change feed connected")

    @staticmethod
    def _notify_error(subscription: Subscription, reason: str) -> None:
        if subscription.on_error is None:
            return
        try:
            subscription.on_error(UnavailableError(subscription.hotel_id, reason))
        except Exception:
            logger.exception(
                f"Feed error callback failed for hotel {subscription.hotel_id}"
            )
