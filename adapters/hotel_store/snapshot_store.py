"""
StayLedger Storage Boundary - Realtime Snapshot Store
=======================================================
Subscribes to the change feed for one hotel, hydrates every delivered
document into typed entities and keeps the engine stores current.

Readiness:
- a collection is usable only after its first full SNAPSHOT
- a feed error marks everything stale until fresh snapshots arrive
- queries against a stale or missing collection raise UnavailableError

Billing and occupancy are recomputed from the current snapshot on
every call; change listeners tell callers when to ask again.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Callable, Dict, List, Optional, Set

from core.config import SettingsProvider
from core.feed import (
    CHECKOUT_HISTORY,
    INVENTORY,
    ROOMS,
    SERVICE_REQUESTS,
    STOCK_MOVEMENTS,
    ChangeFeed,
    FeedUpdate,
    Subscription,
    UnavailableError,
    UpdateKind,
)
from core.time import Clock, DateRange, get_default_clock
from engines.hotel_analytics.services import OccupancyReport, compute_occupancy
from engines.hotel_folio.services import BillSummary, get_bill_summary
from engines.hotel_services.services import ServiceRequestLedger
from engines.hotel_stay.services import HotelStayProjectionStore, find_overlap_conflicts
from engines.inventory.models import InventoryItem, StockMovement
from engines.inventory.services import InventoryLedger

from adapters.hotel_store.hydration import (
    HydrationError,
    hydrate_inventory_item,
    hydrate_room,
    hydrate_service_request,
    hydrate_stock_movement,
)

logger = logging.getLogger("stayledger.store")

ChangeListener = Callable[[str], None]


class HotelSnapshotStore:
    def __init__(self, hotel_id: str, feed: ChangeFeed, *,
                 settings_provider: SettingsProvider,
                 clock: Optional[Clock] = None,
                 stay_store: Optional[HotelStayProjectionStore] = None,
                 service_ledger: Optional[ServiceRequestLedger] = None,
                 inventory_ledger: Optional[InventoryLedger] = None):
        if not hotel_id:
            raise ValueError("hotel_id must be non-empty.")
        clock = clock or get_default_clock()
        self.hotel_id = hotel_id
        self._feed = feed
        self._settings = settings_provider
        self.stays = stay_store or HotelStayProjectionStore()
        self.services = service_ledger or ServiceRequestLedger(clock)
        self.inventory = inventory_ledger or InventoryLedger(clock)

        self._lock = RLock()
        self._subscription: Optional[Subscription] = None
        self._hydrated: Set[str] = set()
        self._error: Optional[UnavailableError] = None
        self._listeners: List[ChangeListener] = []
        self._items: Dict[str, InventoryItem] = {}
        self._movements: Dict[str, StockMovement] = {}
        self._archived_stay_ids: Set[str] = set()

    # ── lifecycle ─────────────────────────────────────────────

    def start(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = self._feed.subscribe(
            self.hotel_id, self._on_update, on_error=self._on_error
        )

    def stop(self) -> None:
        if self._subscription is None:
            return
        self._feed.unsubscribe(self._subscription)
        self._subscription = None
        with self._lock:
            self._hydrated.clear()

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── readiness ─────────────────────────────────────────────

    def is_ready(self, *collections: str) -> bool:
        with self._lock:
            return self._error is None and set(collections) <= self._hydrated

    def require(self, *collections: str) -> None:
        with self._lock:
            if self._subscription is None:
                raise UnavailableError(self.hotel_id, "store is not subscribed")
            if self._error is not None:
                raise UnavailableError(self.hotel_id, self._error.reason)
            missing = sorted(set(collections) - self._hydrated)
        if missing:
            raise UnavailableError(
                self.hotel_id, f"awaiting snapshot for {', '.join(missing)}"
            )

    # ── feed callbacks ────────────────────────────────────────

    def _on_error(self, error: UnavailableError) -> None:
        with self._lock:
            self._error = error
            self._hydrated.clear()
        logger.warning(f"Hotel {self.hotel_id} data unavailable: {error.reason}")
        self._notify("*")

    def _on_update(self, update: FeedUpdate) -> None:
        handlers = {
            ROOMS:            self._apply_rooms,
            SERVICE_REQUESTS: self._apply_service_requests,
            INVENTORY:        self._apply_inventory,
            STOCK_MOVEMENTS:  self._apply_movements,
            CHECKOUT_HISTORY: self._apply_checkout_history,
        }
        with self._lock:
            try:
                handlers[update.collection](update)
            except Exception:
                # a half-applied snapshot must not count as hydrated
                if update.kind is UpdateKind.SNAPSHOT:
                    self._hydrated.discard(update.collection)
                logger.warning(f"Hotel {self.hotel_id}: {update.collection} update failed")
                raise
            if update.kind is UpdateKind.SNAPSHOT:
                self._error = None
                self._hydrated.add(update.collection)
        self._notify(update.collection)

    def _notify(self, collection: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(collection)
            except Exception:
                logger.exception(f"Store listener failed for {collection}")

    def _apply_rooms(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.REMOVED:
            for doc_id, _ in update.documents:
                self.stays.remove_room(doc_id)
            return
        rooms = []
        for doc_id, data in update.documents:
            try:
                rooms.append(hydrate_room(doc_id, data))
            except HydrationError as exc:
                logger.warning(f"Skipping room {doc_id}: {exc}")
        for room in rooms:
            for conflict in find_overlap_conflicts(room):
                logger.warning(
                    f"Room {room.number}: overlapping stays {conflict['stay_ids']}"
                    + (" on an out-of-order block" if conflict["out_of_order"] else "")
                )
        if update.kind is UpdateKind.SNAPSHOT:
            self.stays.load_rooms(rooms)
        else:
            for room in rooms:
                self.stays.upsert_room(room)

    def _apply_service_requests(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.REMOVED:
            for doc_id, _ in update.documents:
                self.services.remove(doc_id)
            return
        requests = []
        for doc_id, data in update.documents:
            try:
                requests.append(hydrate_service_request(doc_id, data))
            except HydrationError as exc:
                logger.warning(f"Skipping service request {doc_id}: {exc}")
        if update.kind is UpdateKind.SNAPSHOT:
            self.services.load(requests)
        else:
            for request in requests:
                self.services.upsert(request)

    def _apply_inventory(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.SNAPSHOT:
            self._items.clear()
        for doc_id, data in update.documents:
            if update.kind is UpdateKind.REMOVED:
                self._items.pop(doc_id, None)
                continue
            try:
                self._items[doc_id] = hydrate_inventory_item(doc_id, data)
            except HydrationError as exc:
                logger.warning(f"Skipping inventory item {doc_id}: {exc}")
        self._reload_inventory()

    def _apply_movements(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.SNAPSHOT:
            self._movements.clear()
        for doc_id, data in update.documents:
            if update.kind is UpdateKind.REMOVED:
                self._movements.pop(doc_id, None)
                continue
            try:
                self._movements[doc_id] = hydrate_stock_movement(doc_id, data)
            except HydrationError as exc:
                logger.warning(f"Skipping stock movement {doc_id}: {exc}")
        self._reload_inventory()

    def _reload_inventory(self) -> None:
        self.inventory.load(self._items.values(), self._movements.values())

    def _apply_checkout_history(self, update: FeedUpdate) -> None:
        if update.kind is UpdateKind.SNAPSHOT:
            self._archived_stay_ids.clear()
        for doc_id, _ in update.documents:
            if update.kind is UpdateKind.REMOVED:
                self._archived_stay_ids.discard(doc_id)
            else:
                self._archived_stay_ids.add(doc_id)

    # ── queries ───────────────────────────────────────────────

    def bill_summary(self, stay_id: str) -> BillSummary:
        self.require(ROOMS, SERVICE_REQUESTS)
        found = self.stays.find_stay(stay_id)
        room, stay = found if found else (None, None)
        return get_bill_summary(
            stay, room,
            rooms=self.stays.list_rooms(),
            service_requests=self.services.snapshot(),
            rates=self._settings.get_billing_rates(),
        )

    def occupancy(self, date_range: Optional[DateRange]) -> OccupancyReport:
        self.require(ROOMS)
        return compute_occupancy(self.stays.list_rooms(), date_range)

    def low_stock_items(self) -> List[InventoryItem]:
        self.require(INVENTORY)
        return self.inventory.low_stock_items()

    def is_archived(self, stay_id: str) -> bool:
        self.require(CHECKOUT_HISTORY)
        return stay_id in self._archived_stay_ids
