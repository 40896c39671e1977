"""
Tests for core.feed - subscribe/unsubscribe, delivery and connection loss.
"""

import pytest

from core.feed import (
    ROOMS,
    SERVICE_REQUESTS,
    DuplicateSubscriptionError,
    FeedUpdate,
    InMemoryChangeFeed,
    UnavailableError,
    UpdateKind,
)

HOTEL = "hotel-1"


class TestFeedUpdate:
    def test_rejects_unknown_collection(self):
        with pytest.raises(ValueError, match="collection"):
            FeedUpdate(hotel_id=HOTEL, collection="guests", kind=UpdateKind.ADDED)

    def test_rejects_empty_hotel(self):
        with pytest.raises(ValueError, match="hotel_id"):
            FeedUpdate(hotel_id="", collection=ROOMS, kind=UpdateKind.ADDED)

    def test_documents_are_copied(self):
        data = {"number": "101"}
        update = FeedUpdate(
            hotel_id=HOTEL, collection=ROOMS, kind=UpdateKind.ADDED,
            documents=(("r1", data),),
        )
        data["number"] = "999"
        assert update.documents[0][1]["number"] == "101"


class TestSubscription:
    def test_delivers_only_to_matching_hotel(self):
        feed = InMemoryChangeFeed()
        seen, other = [], []
        feed.subscribe(HOTEL, seen.append)
        feed.subscribe("hotel-2", other.append)
        result = feed.publish_snapshot(HOTEL, ROOMS, {"r1": {"number": "101"}})
        assert result["notified"] == 1
        assert len(seen) == 1 and seen[0].kind is UpdateKind.SNAPSHOT
        assert other == []

    def test_duplicate_handler_rejected(self):
        feed = InMemoryChangeFeed()
        handler = lambda update: None
        feed.subscribe(HOTEL, handler)
        with pytest.raises(DuplicateSubscriptionError):
            feed.subscribe(HOTEL, handler)

    def test_unsubscribe_stops_delivery(self):
        feed = InMemoryChangeFeed()
        seen = []
        subscription = feed.subscribe(HOTEL, seen.append)
        subscription.unsubscribe()
        feed.publish_snapshot(HOTEL, ROOMS, {})
        assert seen == []
        assert not subscription.active
        assert feed.subscriber_count(HOTEL) == 0

    def test_non_callable_handler_rejected(self):
        with pytest.raises(TypeError):
            InMemoryChangeFeed().subscribe(HOTEL, "not-callable")


class TestDelivery:
    def test_failing_handler_does_not_block_others(self):
        feed = InMemoryChangeFeed()
        seen = []

        def broken(update):
            raise RuntimeError("boom")

        feed.subscribe(HOTEL, broken)
        feed.subscribe(HOTEL, seen.append)
        result = feed.publish(FeedUpdate(
            hotel_id=HOTEL, collection=SERVICE_REQUESTS, kind=UpdateKind.REMOVED,
            documents=(("sr1", {}),),
        ))
        assert result["notified"] == 1
        assert result["failed"] == 1
        assert result["failures"][0]["error_type"] == "RuntimeError"
        assert len(seen) == 1


class TestConnection:
    def test_disconnect_notifies_error_handlers(self):
        feed = InMemoryChangeFeed()
        errors = []
        feed.subscribe(HOTEL, lambda u: None, on_error=errors.append)
        feed.disconnect("network down")
        assert len(errors) == 1
        assert isinstance(errors[0], UnavailableError)
        assert errors[0].reason == "network down"

    def test_publish_while_disconnected_raises(self):
        feed = InMemoryChangeFeed()
        feed.disconnect()
        with pytest.raises(UnavailableError):
            feed.publish_snapshot(HOTEL, ROOMS, {})

    def test_subscribe_while_disconnected_reports_error(self):
        feed = InMemoryChangeFeed()
        feed.disconnect()
        errors = []
        feed.subscribe(HOTEL, lambda u: None, on_error=errors.append)
        assert len(errors) == 1

    def test_reconnect_resumes_delivery(self):
        feed = InMemoryChangeFeed()
        seen = []
        feed.subscribe(HOTEL, seen.append)
        feed.disconnect()
        feed.connect()
        assert feed.connected
        feed.publish_snapshot(HOTEL, ROOMS, {})
        assert len(seen) == 1
