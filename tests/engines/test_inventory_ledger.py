"""StayLedger inventory stock ledger tests."""

from datetime import datetime, timezone

import pytest

from core.time import FixedClock
from engines.inventory.commands import RegisterItemRequest
from engines.inventory.errors import InsufficientStockError, UnknownItemError
from engines.inventory.models import (
    InventoryItem,
    MovementType,
    NegativeStockPolicy,
    StockMovement,
)
from engines.inventory.services import InventoryLedger

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_ledger(policy=NegativeStockPolicy.FLAG, stock=10, par=5):
    clock = FixedClock(NOW)
    ledger = InventoryLedger(clock, negative_stock_policy=policy)
    ledger.register_item(RegisterItemRequest(
        item_id="soap", name="Soap Bar", opening_stock=stock, par_level=par, unit="pcs",
    ))
    return ledger, clock


class TestRegisterItem:
    def test_opening_stock_is_a_movement(self):
        ledger, _ = make_ledger()
        log = ledger.movement_log("soap")
        assert len(log) == 1
        assert log[0].movement_type is MovementType.ADJUSTMENT
        assert log[0].quantity == 10
        assert ledger.verify_consistency() == []

    def test_zero_opening_stock_has_no_movement(self):
        ledger, _ = make_ledger(stock=0)
        assert ledger.movement_log() == []

    def test_duplicate_item_rejected(self):
        ledger, _ = make_ledger()
        with pytest.raises(ValueError, match="already exists"):
            ledger.register_item(RegisterItemRequest(item_id="soap", name="Soap"))

    def test_negative_opening_stock_rejected(self):
        with pytest.raises(ValueError):
            RegisterItemRequest(item_id="x", name="X", opening_stock=-1)


class TestSignConvention:
    @pytest.mark.parametrize("movement_type,quantity", [
        (MovementType.RESTOCK, 0),
        (MovementType.RESTOCK, -3),
        (MovementType.CONSUMPTION, 2),
        (MovementType.ADJUSTMENT, 0),
    ])
    def test_wrong_sign_rejected(self, movement_type, quantity):
        ledger, _ = make_ledger()
        with pytest.raises(ValueError):
            ledger.record_movement("soap", movement_type, quantity)

    def test_helpers_apply_signs(self):
        ledger, _ = make_ledger()
        ledger.restock("soap", 5)
        ledger.consume("soap", 3)
        ledger.adjust("soap", -2, "damaged")
        assert ledger.get_item("soap").stock == 10
        assert [m.quantity for m in ledger.movement_log("soap")][:3] == [-2, -3, 5]

    def test_unknown_item(self):
        ledger, _ = make_ledger()
        with pytest.raises(UnknownItemError):
            ledger.restock("ghost", 1)


class TestLowStock:
    def test_equal_to_par_is_not_low(self):
        ledger, _ = make_ledger(stock=5, par=5)
        assert not ledger.is_low_stock("soap")

    def test_below_par_is_low(self):
        ledger, _ = make_ledger(stock=5, par=5)
        ledger.consume("soap", 1)
        assert ledger.is_low_stock("soap")
        assert [i.item_id for i in ledger.low_stock_items()] == ["soap"]


class TestNegativeStock:
    def test_flag_policy_records_without_clamping(self):
        ledger, _ = make_ledger(stock=2)
        ledger.consume("soap", 5)
        assert ledger.get_item("soap").stock == -3
        assert [i.item_id for i in ledger.negative_stock_items()] == ["soap"]
        assert ledger.verify_consistency() == []

    def test_reject_policy_refuses(self):
        ledger, _ = make_ledger(NegativeStockPolicy.REJECT, stock=2)
        with pytest.raises(InsufficientStockError):
            ledger.consume("soap", 5)
        assert ledger.get_item("soap").stock == 2
        assert len(ledger.movement_log("soap")) == 1


class TestMovementLog:
    def test_newest_first(self):
        ledger, clock = make_ledger()
        clock.advance(60)
        ledger.restock("soap", 1, "first")
        clock.advance(60)
        ledger.consume("soap", 1, "second")
        notes = [m.note for m in ledger.movement_log("soap")]
        assert notes == ["second", "first", "Opening stock"]

    def test_same_timestamp_keeps_newest_on_top(self):
        ledger, _ = make_ledger()
        ledger.restock("soap", 1, "a")
        ledger.restock("soap", 1, "b")
        assert ledger.movement_log("soap")[0].note == "b"


class TestConsistency:
    def test_loaded_snapshot_divergence_detected(self):
        ledger = InventoryLedger(FixedClock(NOW))
        ledger.load(
            [InventoryItem(item_id="tea", name="Tea", stock=7, par_level=2)],
            [StockMovement("m1", "tea", MovementType.RESTOCK, 5, NOW)],
        )
        assert ledger.verify_consistency() == ["tea"]
