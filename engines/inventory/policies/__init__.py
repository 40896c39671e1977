"""
StayLedger Inventory - Policies
"""
from __future__ import annotations

from typing import Optional

from engines.inventory.models import MovementType


def movement_sign_must_match_type_policy(
    movement_type: MovementType, quantity: int
) -> Optional[str]:
    """Restock > 0, consumption < 0, adjustment != 0."""
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        return "quantity must be an integer."
    if movement_type is MovementType.RESTOCK and quantity <= 0:
        return "restock quantity must be positive."
    if movement_type is MovementType.CONSUMPTION and quantity >= 0:
        return "consumption quantity must be negative."
    if movement_type is MovementType.ADJUSTMENT and quantity == 0:
        return "adjustment quantity must be non-zero."
    return None
