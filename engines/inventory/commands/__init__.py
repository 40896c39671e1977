"""
StayLedger Inventory - Request Commands
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegisterItemRequest:
    item_id:       str
    name:          str
    opening_stock: int = 0
    par_level:     int = 0
    unit:          str = ""
    category:      str = ""

    def __post_init__(self):
        if not self.item_id: raise ValueError("item_id must be non-empty.")
        if not self.name:    raise ValueError("name must be non-empty.")
        if not isinstance(self.opening_stock, int) or self.opening_stock < 0:
            raise ValueError("opening_stock must be an integer >= 0.")
        if not isinstance(self.par_level, int) or self.par_level < 0:
            raise ValueError("par_level must be an integer >= 0.")
