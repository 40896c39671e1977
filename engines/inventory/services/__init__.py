"""
StayLedger Inventory - Stock Ledger
=====================================
Every stock-affecting action appends a StockMovement and updates the
item's cached stock under the same lock, so the two never diverge.

Sign convention:
    RESTOCK      quantity > 0
    CONSUMPTION  quantity < 0
    ADJUSTMENT   quantity != 0

An item is low on stock iff stock < par_level.
"""

from __future__ import annotations

import logging
import uuid
from threading import Lock
from typing import Dict, Iterable, List, Optional

from core.time import Clock, get_default_clock
from engines.inventory.commands import RegisterItemRequest
from engines.inventory.errors import InsufficientStockError, UnknownItemError
from engines.inventory.events import (
    INVENTORY_ITEM_REGISTERED_V1,
    INVENTORY_STOCK_MOVED_V1,
    build_item_registered_payload,
    build_stock_moved_payload,
)
from engines.inventory.models import (
    InventoryItem,
    MovementType,
    NegativeStockPolicy,
    StockMovement,
)
from engines.inventory.policies import movement_sign_must_match_type_policy

logger = logging.getLogger("stayledger.inventory")

OPENING_STOCK_NOTE = "Opening stock"


class InventoryLedger:
    def __init__(self, clock: Optional[Clock] = None,
                 negative_stock_policy: NegativeStockPolicy = NegativeStockPolicy.FLAG):
        self._clock = clock or get_default_clock()
        self._policy = negative_stock_policy
        self._lock = Lock()
        self._events: List[dict] = []
        self._items: Dict[str, InventoryItem] = {}
        self._movements: List[StockMovement] = []

    # ══════════════════════════════════════════════════════════
    # COMMANDS
    # ══════════════════════════════════════════════════════════

    def register_item(self, req: RegisterItemRequest) -> InventoryItem:
        with self._lock:
            if req.item_id in self._items:
                raise ValueError(f"inventory item '{req.item_id}' already exists.")
            item = InventoryItem(
                item_id=req.item_id,
                name=req.name,
                par_level=req.par_level,
                unit=req.unit,
                category=req.category,
            )
            self._items[item.item_id] = item
            self._events.append({
                "event_type": INVENTORY_ITEM_REGISTERED_V1,
                "payload": build_item_registered_payload(req),
            })
            if req.opening_stock:
                self._append_movement(
                    item, MovementType.ADJUSTMENT, req.opening_stock,
                    OPENING_STOCK_NOTE,
                )
        logger.info(f"Inventory item registered: {item.name} ({item.item_id})")
        return item

    def record_movement(self, item_id: str, movement_type: MovementType,
                        quantity: int, note: str = "") -> StockMovement:
        msg = movement_sign_must_match_type_policy(movement_type, quantity)
        if msg:
            raise ValueError(msg)
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise UnknownItemError(item_id)
            resulting = item.stock + quantity
            if resulting < 0 and self._policy is NegativeStockPolicy.REJECT:
                raise InsufficientStockError(item_id, item.stock, quantity)
            movement = self._append_movement(item, movement_type, quantity, note)
        if resulting < 0:
            logger.warning(
                f"Inventory item {item.name} went negative: stock={resulting}"
            )
        elif item.is_low_stock:
            logger.info(
                f"Inventory item {item.name} below par: "
                f"{item.stock} < {item.par_level}"
            )
        return movement

    def _append_movement(self, item: InventoryItem, movement_type: MovementType,
                         quantity: int, note: str) -> StockMovement:
        movement = StockMovement(
            movement_id=uuid.uuid4().hex,
            item_id=item.item_id,
            movement_type=movement_type,
            quantity=quantity,
            timestamp=self._clock.now_utc(),
            note=note,
            item_name=item.name,
        )
        self._movements.append(movement)
        item.stock += quantity
        self._events.append({
            "event_type": INVENTORY_STOCK_MOVED_V1,
            "payload": build_stock_moved_payload(movement, item.stock),
        })
        return movement

    def restock(self, item_id: str, quantity: int, note: str = "") -> StockMovement:
        return self.record_movement(item_id, MovementType.RESTOCK, quantity, note)

    def consume(self, item_id: str, quantity: int, note: str = "") -> StockMovement:
        """quantity is the positive amount used up."""
        return self.record_movement(item_id, MovementType.CONSUMPTION, -quantity, note)

    def adjust(self, item_id: str, delta: int, note: str = "") -> StockMovement:
        return self.record_movement(item_id, MovementType.ADJUSTMENT, delta, note)

    # ══════════════════════════════════════════════════════════
    # HYDRATION
    # ══════════════════════════════════════════════════════════

    def load(self, items: Iterable[InventoryItem],
             movements: Iterable[StockMovement] = ()) -> None:
        """Replace state with a snapshot; stock is taken as delivered."""
        with self._lock:
            self._items = {i.item_id: i for i in items}
            self._movements = list(movements)
        for item_id in self.verify_consistency():
            logger.warning(f"Inventory item {item_id}: stock disagrees with movements")

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        return self._items.get(item_id)

    def list_items(self) -> List[InventoryItem]:
        with self._lock:
            return sorted(self._items.values(), key=lambda i: i.name)

    def is_low_stock(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        return item.is_low_stock

    def low_stock_items(self) -> List[InventoryItem]:
        return [i for i in self.list_items() if i.is_low_stock]

    def negative_stock_items(self) -> List[InventoryItem]:
        return [i for i in self.list_items() if i.stock < 0]

    def movement_log(self, item_id: Optional[str] = None) -> List[StockMovement]:
        """Most recent first."""
        with self._lock:
            movements = [
                m for m in self._movements
                if item_id is None or m.item_id == item_id
            ]
        # reversed first so equal timestamps keep newest-appended on top
        return sorted(reversed(movements), key=lambda m: m.timestamp, reverse=True)

    def verify_consistency(self) -> List[str]:
        """Ids of items whose cached stock differs from their movement sum."""
        with self._lock:
            totals: Dict[str, int] = {}
            for m in self._movements:
                totals[m.item_id] = totals.get(m.item_id, 0) + m.quantity
            return sorted(
                item_id for item_id, item in self._items.items()
                if item.stock != totals.get(item_id, 0)
            )

    @property
    def event_count(self) -> int:
        return len(self._events)
