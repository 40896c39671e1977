"""StayLedger storage boundary tests: feed-driven snapshot store."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from adapters.hotel_store import HotelSnapshotStore
from core.config import BillingRates, InMemorySettingsProvider
from core.feed import (
    CHECKOUT_HISTORY,
    INVENTORY,
    ROOMS,
    SERVICE_REQUESTS,
    STOCK_MOVEMENTS,
    FeedUpdate,
    InMemoryChangeFeed,
    UnavailableError,
    UpdateKind,
)
from core.time import DateRange, FixedClock
from engines.hotel_stay.services import HotelStayProjectionStore

HOTEL = "hotel-1"
NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
RATES = BillingRates(gst_rate=10, service_charge_rate=5)

ROOM_DOCS = {
    "r101": {
        "number": "101", "type": "Deluxe", "status": "Occupied",
        "stays": [{
            "stayId": "101-A", "checkInDate": "2026-03-01", "checkOutDate": "2026-03-03",
            "roomCharge": 100, "paidAmount": 50, "status": "Checked In",
        }],
    },
    "r102": {"number": "102", "type": "Deluxe", "status": "Available", "stays": []},
}

REQUEST_DOCS = {
    "sr-1": {"roomNumber": "101", "service": "Dinner", "stayId": "101-A",
             "price": 20, "status": "Completed", "creationTime": "2026-03-01T12:00:00Z"},
}


def make_store():
    feed = InMemoryChangeFeed()
    store = HotelSnapshotStore(
        HOTEL, feed,
        settings_provider=InMemorySettingsProvider(RATES),
        clock=FixedClock(NOW),
    )
    store.start()
    return feed, store


def hydrate(feed):
    feed.publish_snapshot(HOTEL, ROOMS, ROOM_DOCS)
    feed.publish_snapshot(HOTEL, SERVICE_REQUESTS, REQUEST_DOCS)


class TestReadiness:
    def test_not_started_is_unavailable(self):
        store = HotelSnapshotStore(HOTEL, InMemoryChangeFeed(),
                                   settings_provider=InMemorySettingsProvider())
        with pytest.raises(UnavailableError, match="not subscribed"):
            store.occupancy(DateRange.single(date(2026, 3, 1)))

    def test_awaiting_snapshot_is_unavailable(self):
        feed, store = make_store()
        feed.publish_snapshot(HOTEL, ROOMS, ROOM_DOCS)
        with pytest.raises(UnavailableError, match="serviceRequests"):
            store.bill_summary("101-A")

    def test_disconnect_marks_stale(self):
        feed, store = make_store()
        hydrate(feed)
        assert store.is_ready(ROOMS, SERVICE_REQUESTS)
        feed.disconnect("network down")
        with pytest.raises(UnavailableError, match="network down"):
            store.bill_summary("101-A")

    def test_fresh_snapshots_recover(self):
        feed, store = make_store()
        hydrate(feed)
        feed.disconnect()
        feed.connect()
        hydrate(feed)
        assert store.bill_summary("101-A").current_balance == Decimal("203")

    def test_malformed_nested_entry_keeps_snapshot(self):
        feed, store = make_store()
        docs = dict(ROOM_DOCS)
        docs["r102"] = {"number": "102", "type": "Deluxe", "stays": ["corrupt"]}
        summary = feed.publish_snapshot(HOTEL, ROOMS, docs)
        feed.publish_snapshot(HOTEL, SERVICE_REQUESTS, REQUEST_DOCS)

        assert summary["failed"] == 0
        assert len(store.stays.list_rooms()) == 2
        assert store.bill_summary("101-A").current_balance == Decimal("203")
        report = store.occupancy(DateRange.single(date(2026, 3, 1)))
        assert report.series[0].occupancy_percent == 50

    def test_failed_snapshot_is_not_ready(self):
        class BrokenStayStore(HotelStayProjectionStore):
            def load_rooms(self, rooms):
                raise RuntimeError("load failed")

        feed = InMemoryChangeFeed()
        store = HotelSnapshotStore(
            HOTEL, feed,
            settings_provider=InMemorySettingsProvider(RATES),
            clock=FixedClock(NOW),
            stay_store=BrokenStayStore(),
        )
        store.start()
        summary = feed.publish_snapshot(HOTEL, ROOMS, ROOM_DOCS)

        assert summary["failed"] == 1
        assert not store.is_ready(ROOMS)
        with pytest.raises(UnavailableError, match="awaiting snapshot for rooms"):
            store.occupancy(DateRange.single(date(2026, 3, 1)))

    def test_stop_unsubscribes(self):
        feed, store = make_store()
        store.stop()
        assert feed.subscriber_count(HOTEL) == 0
        with pytest.raises(UnavailableError):
            store.occupancy(None)


class TestQueries:
    def test_bill_summary_from_documents(self):
        feed, store = make_store()
        hydrate(feed)
        summary = store.bill_summary("101-A")
        assert summary.total_with_taxes == Decimal("253")
        assert summary.current_balance == Decimal("203")

    def test_unknown_stay_bills_zero(self):
        feed, store = make_store()
        hydrate(feed)
        assert store.bill_summary("ghost").current_balance == 0

    def test_occupancy_from_documents(self):
        feed, store = make_store()
        hydrate(feed)
        report = store.occupancy(DateRange(date(2026, 3, 1), date(2026, 3, 3)))
        assert [p.occupancy_percent for p in report.series] == [50, 50, 0]

    def test_incremental_update_recomputes(self):
        feed, store = make_store()
        hydrate(feed)
        feed.publish(FeedUpdate(
            hotel_id=HOTEL, collection=SERVICE_REQUESTS, kind=UpdateKind.ADDED,
            documents=(("sr-2", {"roomNumber": "101", "service": "Spa", "stayId": "101-A",
                                 "price": 40, "creationTime": "2026-03-01T15:00:00Z"}),),
        ))
        assert store.bill_summary("101-A").current_balance == Decimal("203") + Decimal("46")

    def test_removed_room(self):
        feed, store = make_store()
        hydrate(feed)
        feed.publish(FeedUpdate(hotel_id=HOTEL, collection=ROOMS,
                                kind=UpdateKind.REMOVED, documents=(("r101", {}),)))
        assert store.stays.get_room("r101") is None
        assert store.bill_summary("101-A").current_balance == 0

    def test_inventory_low_stock(self):
        feed, store = make_store()
        feed.publish_snapshot(HOTEL, INVENTORY, {
            "soap": {"name": "Soap", "stock": 3, "parLevel": 10},
            "tea": {"name": "Tea", "stock": 10, "parLevel": 10},
        })
        feed.publish_snapshot(HOTEL, STOCK_MOVEMENTS, {
            "m1": {"itemId": "soap", "type": "Restock", "quantity": 3,
                   "date": "2026-02-28T10:00:00Z"},
        })
        assert [i.item_id for i in store.low_stock_items()] == ["soap"]
        assert len(store.inventory.movement_log("soap")) == 1

    def test_checkout_history_ids(self):
        feed, store = make_store()
        feed.publish_snapshot(HOTEL, CHECKOUT_HISTORY, {"100-Z": {"guestName": "Old"}})
        assert store.is_archived("100-Z")
        assert not store.is_archived("101-A")


class TestListeners:
    def test_listener_notified_per_update(self):
        feed, store = make_store()
        seen = []
        store.add_listener(seen.append)
        hydrate(feed)
        assert seen == [ROOMS, SERVICE_REQUESTS]

    def test_failing_listener_does_not_break_store(self):
        feed, store = make_store()

        def broken(collection):
            raise RuntimeError("boom")

        store.add_listener(broken)
        hydrate(feed)
        assert store.bill_summary("101-A").current_balance == Decimal("203")

    def test_listener_told_about_outage(self):
        feed, store = make_store()
        seen = []
        store.add_listener(seen.append)
        feed.disconnect()
        assert seen == ["*"]
