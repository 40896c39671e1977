"""StayLedger storage boundary tests: document hydration."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from adapters.hotel_store.hydration import (
    HydrationError,
    hydrate_inventory_item,
    hydrate_room,
    hydrate_service_request,
    hydrate_stock_movement,
    parse_calendar_date,
    parse_timestamp,
)
from engines.hotel_services.models import ServiceRequestStatus
from engines.hotel_stay.models import RoomStatus, StayStatus
from engines.inventory.models import MovementType

MARCH_1 = datetime(2026, 3, 1, tzinfo=timezone.utc)


class TestParseTimestamp:
    def test_iso_date_string(self):
        assert parse_calendar_date("2026-03-01") == date(2026, 3, 1)

    def test_iso_datetime_string(self):
        assert parse_timestamp("2026-03-01T10:30:00Z") == datetime(
            2026, 3, 1, 10, 30, tzinfo=timezone.utc)

    def test_timestamp_map(self):
        seconds = int(MARCH_1.timestamp())
        assert parse_timestamp({"seconds": seconds, "nanoseconds": 0}) == MARCH_1
        assert parse_timestamp({"_seconds": seconds, "_nanoseconds": 0}) == MARCH_1

    def test_epoch_milliseconds(self):
        assert parse_timestamp(int(MARCH_1.timestamp()) * 1000) == MARCH_1

    def test_naive_datetime_assumed_utc(self):
        assert parse_timestamp(datetime(2026, 3, 1)) == MARCH_1

    @pytest.mark.parametrize("raw", [None, "", "not a date", "2026-13-45", {}, True, [1]])
    def test_unrecoverable(self, raw):
        assert parse_timestamp(raw) is None


class TestHydrateRoom:
    def doc(self, **overrides):
        data = {
            "number": "101",
            "type": "Deluxe",
            "status": "Occupied",
            "stays": [
                {
                    "stayId": "101-A",
                    "guestName": "Asha",
                    "checkInDate": {"seconds": int(MARCH_1.timestamp()), "nanoseconds": 0},
                    "checkOutDate": "2026-03-03",
                    "roomCharge": 100.5,
                    "paidAmount": "50",
                    "status": "Checked In",
                    "isGroupBooking": True,
                    "groupMasterStayId": "101-A",
                    "isPrimaryInGroup": True,
                },
            ],
            "outOfOrderBlocks": [{"from": "2026-03-10", "to": "2026-03-12"}],
        }
        data.update(overrides)
        return data

    def test_full_document(self):
        room = hydrate_room("r101", self.doc())
        assert room.category == "Deluxe"
        assert room.status is RoomStatus.OCCUPIED
        stay = room.stays[0]
        assert stay.check_in_date == date(2026, 3, 1)
        assert stay.check_out_date == date(2026, 3, 3)
        assert stay.room_charge == Decimal("100.5")
        assert stay.status is StayStatus.CHECKED_IN
        assert stay.group_master_stay_id == "101-A"
        assert room.out_of_order_blocks[0].to_date == date(2026, 3, 12)

    def test_broken_stay_skipped_siblings_kept(self):
        doc = self.doc()
        doc["stays"].append({"stayId": "101-B", "checkInDate": "garbage",
                             "checkOutDate": "2026-03-05", "roomCharge": 90})
        room = hydrate_room("r101", doc)
        assert [s.stay_id for s in room.stays] == ["101-A"]

    def test_booked_and_master_map_to_reserved(self):
        doc = self.doc()
        doc["stays"][0]["status"] = "Booked"
        assert hydrate_room("r101", doc).stays[0].status is StayStatus.RESERVED
        doc["stays"][0]["status"] = "Master"
        assert hydrate_room("r101", doc).stays[0].status is StayStatus.RESERVED

    def test_cleaning_room_keeps_checkout_day(self):
        room = hydrate_room("r101", self.doc(status="Cleaning", checkOutDate="2026-03-02",
                                             stays=[]))
        assert room.last_checkout_date == date(2026, 3, 2)

    def test_unreadable_block_skipped(self):
        room = hydrate_room("r101", self.doc(outOfOrderBlocks=[{"from": None, "to": "x"}]))
        assert room.out_of_order_blocks == []

    def test_non_record_entries_skipped(self):
        doc = self.doc()
        doc["stays"].append("corrupt")
        doc["outOfOrderBlocks"].append(42)
        room = hydrate_room("r101", doc)
        assert [s.stay_id for s in room.stays] == ["101-A"]
        assert len(room.out_of_order_blocks) == 1

    def test_non_record_room_rejected(self):
        with pytest.raises(HydrationError):
            hydrate_room("r101", ["not", "a", "room"])


class TestHydrateOtherDocuments:
    def test_service_request(self):
        request = hydrate_service_request("sr-1", {
            "roomNumber": "101", "service": "Laundry", "status": "In Progress",
            "creationTime": "2026-03-01T08:00:00Z", "stayId": "101-A", "price": 12.5,
        })
        assert request.status is ServiceRequestStatus.IN_PROGRESS
        assert request.price == Decimal("12.5")

    def test_service_request_without_price(self):
        request = hydrate_service_request("sr-1", {
            "roomNumber": "101", "service": "Towels", "creationTime": MARCH_1,
        })
        assert request.price is None
        assert request.quantity == 1

    def test_service_request_without_time_rejected(self):
        with pytest.raises(HydrationError):
            hydrate_service_request("sr-1", {"service": "Towels"})

    def test_inventory_item(self):
        item = hydrate_inventory_item("soap", {"name": "Soap", "stock": "12",
                                               "parLevel": 20, "unit": "pcs"})
        assert item.stock == 12
        assert item.is_low_stock

    def test_stock_movement(self):
        movement = hydrate_stock_movement("m1", {
            "itemId": "soap", "itemName": "Soap", "type": "Consumption",
            "quantity": -3, "date": int(MARCH_1.timestamp()) * 1000, "notes": "room 101",
        })
        assert movement.movement_type is MovementType.CONSUMPTION
        assert movement.timestamp == MARCH_1

    def test_stock_movement_unknown_type(self):
        with pytest.raises(HydrationError):
            hydrate_stock_movement("m1", {"type": "Theft", "date": MARCH_1})
