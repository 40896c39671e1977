"""
StayLedger Inventory - Event Types and Payload Builders
=========================================================
Engine: inventory
Scope:  Stock ledger for hotel consumables. One event per item
        registration and one per stock movement.
"""
from __future__ import annotations

INVENTORY_ITEM_REGISTERED_V1 = "inventory.item.registered.v1"
INVENTORY_STOCK_MOVED_V1     = "inventory.stock.moved.v1"

INVENTORY_EVENT_TYPES = (
    INVENTORY_ITEM_REGISTERED_V1,
    INVENTORY_STOCK_MOVED_V1,
)


def build_item_registered_payload(req) -> dict:
    return {
        "item_id":       req.item_id,
        "name":          req.name,
        "opening_stock": req.opening_stock,
        "par_level":     req.par_level,
        "unit":          req.unit,
        "category":      req.category,
    }


def build_stock_moved_payload(movement, stock_after: int) -> dict:
    return {
        "movement_id":   movement.movement_id,
        "item_id":       movement.item_id,
        "movement_type": movement.movement_type.value,
        "quantity":      movement.quantity,
        "timestamp":     movement.timestamp,
        "note":          movement.note,
        "stock_after":   stock_after,
    }
