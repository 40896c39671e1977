"""StayLedger Inventory - Errors"""


class InventoryError(Exception):
    pass


class UnknownItemError(InventoryError, LookupError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"inventory item '{item_id}' not found.")


class InsufficientStockError(InventoryError):
    def __init__(self, item_id: str, stock: int, quantity: int):
        self.item_id = item_id
        self.stock = stock
        self.quantity = quantity
        super().__init__(
            f"Item '{item_id}' has {stock} in stock; "
            f"a movement of {quantity} would leave {stock + quantity}."
        )
