"""StayLedger occupancy analytics tests."""

from datetime import date, timedelta

import pytest

from core.time import DateRange
from engines.hotel_analytics.services import (
    category_occupancy,
    compute_occupancy,
)
from engines.hotel_stay.models import OutOfOrderBlock, Room, Stay, StayStatus

TODAY = date(2026, 3, 1)


def d(offset: int) -> date:
    return TODAY + timedelta(days=offset)


def room(room_id, category="Deluxe", stays=(), blocks=()):
    r = Room(room_id=room_id, number=room_id, category=category,
             out_of_order_blocks=list(blocks))
    for s in stays:
        r.add_stay(s)
    return r


def stay(stay_id, check_in, check_out, status=StayStatus.RESERVED):
    return Stay(stay_id=stay_id, room_id="x", check_in_date=d(check_in),
                check_out_date=d(check_out), room_charge=100, status=status)


class TestComputeOccupancy:
    def test_no_rooms_is_zero_every_day(self):
        report = compute_occupancy([], DateRange(d(0), d(2)))
        assert [p.occupancy_percent for p in report.series] == [0, 0, 0]

    def test_missing_range_is_empty(self):
        report = compute_occupancy([room("1")], None)
        assert report.series == ()
        assert report.average_occupancy == 0

    def test_checkout_day_not_counted(self):
        rooms = [room("1", stays=[stay("a", 0, 2)]), room("2")]
        report = compute_occupancy(rooms, DateRange(d(0), d(2)))
        assert [p.occupancy_percent for p in report.series] == [50, 50, 0]

    def test_block_counts_as_occupied(self):
        rooms = [room("1", blocks=[OutOfOrderBlock(d(2), d(2))]), room("2")]
        report = compute_occupancy(rooms, DateRange(d(1), d(3)))
        assert [p.occupancy_percent for p in report.series] == [0, 50, 0]

    def test_room_counted_once(self):
        rooms = [room("1", stays=[stay("a", 0, 2)], blocks=[OutOfOrderBlock(d(0), d(0))])]
        report = compute_occupancy(rooms, DateRange.single(d(0)))
        assert report.series[0].occupancy_percent == 100

    def test_labels(self):
        assert compute_occupancy([], DateRange(d(0), d(6))).label == (
            "Occupancy 2026-03-01 to 2026-03-07"
        )
        assert compute_occupancy([], DateRange.single(d(0))).label == "Occupancy 2026-03-01"

    def test_average(self):
        rooms = [room("1", stays=[stay("a", 0, 1)]), room("2")]
        report = compute_occupancy(rooms, DateRange(d(0), d(1)))
        assert report.average_occupancy == pytest.approx(25.0)

    def test_recomputed_after_change(self):
        r = room("1")
        window = DateRange.single(d(0))
        assert compute_occupancy([r], window).series[0].occupancy_percent == 0
        r.add_stay(stay("a", 0, 1))
        assert compute_occupancy([r], window).series[0].occupancy_percent == 100


class TestCategoryOccupancy:
    def test_only_checked_in_guests_count(self):
        rooms = [
            room("1", "Deluxe", stays=[stay("a", 0, 2, StayStatus.CHECKED_IN)]),
            room("2", "Deluxe", stays=[stay("b", 0, 2)]),
            room("3", "Suite", blocks=[OutOfOrderBlock(d(0), d(1))]),
            room("4", "Suite"),
        ]
        report = category_occupancy(rooms, ["Deluxe", "Suite", "Villa"], TODAY)
        assert report.for_category("Deluxe").occupied_rooms == 1
        assert report.for_category("Deluxe").occupancy_percent == 50
        assert report.for_category("Suite").occupied_rooms == 1
        assert report.for_category("Villa").occupancy_percent == 0
        assert report.overall.occupied_rooms == 2
        assert report.overall.occupancy_percent == 50
