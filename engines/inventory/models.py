"""
StayLedger Inventory - Entities
=================================
Stock is an integer count per item. Every change is a signed
StockMovement; the item's cached stock equals the running sum of
its movements.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MovementType(Enum):
    RESTOCK = "RESTOCK"
    CONSUMPTION = "CONSUMPTION"
    ADJUSTMENT = "ADJUSTMENT"


class NegativeStockPolicy(Enum):
    FLAG = "FLAG"      # record it, warn, list it
    REJECT = "REJECT"  # refuse the movement


@dataclass
class InventoryItem:
    item_id: str
    name: str
    stock: int = 0
    par_level: int = 0
    unit: str = ""
    category: str = ""

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.par_level


@dataclass(frozen=True)
class StockMovement:
    movement_id: str
    item_id: str
    movement_type: MovementType
    quantity: int
    timestamp: datetime
    note: str = ""
    item_name: str = ""
