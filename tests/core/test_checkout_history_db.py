from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from core.checkout_history import (
    ArchivedStay,
    DbCheckoutArchive,
    DuplicateArchiveError,
    InMemoryCheckoutArchive,
)
from core.checkout_history.models import CheckedOutStayRecord

NOW = datetime(2026, 3, 4, 11, 0, tzinfo=timezone.utc)


def _record(stay_id: str = "101-ABC123", *, status: str = "CHECKED_OUT",
            archived_at: datetime = NOW) -> ArchivedStay:
    return ArchivedStay(
        stay_id=stay_id,
        room_number="101",
        room_type="Deluxe",
        guest_name="Asha Rao",
        status=status,
        check_in_date=date(2026, 3, 1),
        check_out_date=date(2026, 3, 4),
        archived_at=archived_at,
        final_bill={"grandTotal": "253", "balance": "0"},
        service_request_ids=["sr-1", "sr-2"],
    )


class TestArchivedStay:
    def test_rejects_non_terminal_status(self):
        with pytest.raises(ValueError, match="status"):
            _record(status="RESERVED")

    def test_request_ids_become_tuple(self):
        assert _record().service_request_ids == ("sr-1", "sr-2")


class TestInMemoryCheckoutArchive:
    def test_archive_and_get(self):
        archive = InMemoryCheckoutArchive()
        archive.archive(_record())
        assert archive.contains("101-ABC123")
        assert archive.get("101-ABC123").final_bill["grandTotal"] == "253"
        assert len(archive) == 1

    def test_second_archive_rejected(self):
        archive = InMemoryCheckoutArchive()
        archive.archive(_record())
        with pytest.raises(DuplicateArchiveError):
            archive.archive(_record())
        assert len(archive) == 1


@pytest.mark.django_db(transaction=True)
class TestDbCheckoutArchive:
    def test_round_trip_through_orm(self):
        archive = DbCheckoutArchive("hotel-1")
        archive.archive(_record())

        row = CheckedOutStayRecord.objects.get(stay_id="101-ABC123")
        assert row.hotel_id == "hotel-1"
        assert row.service_request_ids == ["sr-1", "sr-2"]

        restored = archive.get("101-ABC123")
        assert restored == _record()

    def test_duplicate_rejected_per_hotel(self):
        archive = DbCheckoutArchive("hotel-1")
        archive.archive(_record())
        with pytest.raises(DuplicateArchiveError):
            archive.archive(_record())
        assert CheckedOutStayRecord.objects.count() == 1

    def test_hotels_are_isolated(self):
        DbCheckoutArchive("hotel-1").archive(_record())
        other = DbCheckoutArchive("hotel-2")
        assert not other.contains("101-ABC123")
        other.archive(_record())
        assert CheckedOutStayRecord.objects.count() == 2

    def test_list_records_ordered_by_archive_time(self):
        archive = DbCheckoutArchive("hotel-1")
        archive.archive(_record("late", archived_at=NOW + timedelta(hours=1)))
        archive.archive(_record("early", archived_at=NOW))
        assert [r.stay_id for r in archive.list_records()] == ["early", "late"]

    def test_missing_stay_returns_none(self):
        assert DbCheckoutArchive("hotel-1").get("nope") is None
