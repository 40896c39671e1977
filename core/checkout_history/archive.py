"""
StayLedger Checkout History - Archive Sink
============================================
Stays that are checked out or cancelled leave the active room and
land here together with their final bill and the ids of the service
requests that travelled with them.

Two implementations:
- InMemoryCheckoutArchive for tests and tooling
- DbCheckoutArchive backed by the Django ORM
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger("stayledger.checkout_history")


@dataclass(frozen=True)
class ArchivedStay:
    stay_id: str
    room_number: str
    room_type: str
    guest_name: str
    status: str  # CHECKED_OUT | CANCELLED
    check_in_date: date
    check_out_date: date
    archived_at: datetime
    final_bill: Dict[str, Any] = field(default_factory=dict)
    service_request_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.stay_id:
            raise ValueError("stay_id must be non-empty.")
        if self.status not in ("CHECKED_OUT", "CANCELLED"):
            raise ValueError("status must be CHECKED_OUT or CANCELLED.")
        object.__setattr__(self, "service_request_ids", tuple(self.service_request_ids))


class DuplicateArchiveError(Exception):
    """A stay can be archived only once."""

    def __init__(self, stay_id: str):
        self.stay_id = stay_id
        super().__init__(f"Stay '{stay_id}' is already archived.")


class CheckoutArchive(Protocol):
    def archive(self, record: ArchivedStay) -> None:
        ...  # pragma: no cover

    def contains(self, stay_id: str) -> bool:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY ARCHIVE
# ══════════════════════════════════════════════════════════════

class InMemoryCheckoutArchive:
    def __init__(self) -> None:
        self._records: Dict[str, ArchivedStay] = {}
        self._lock = Lock()

    def archive(self, record: ArchivedStay) -> None:
        with self._lock:
            if record.stay_id in self._records:
                raise DuplicateArchiveError(record.stay_id)
            self._records[record.stay_id] = record
        logger.info(f"Stay archived: {record.stay_id} ({record.status})")

    def contains(self, stay_id: str) -> bool:
        with self._lock:
            return stay_id in self._records

    def get(self, stay_id: str) -> Optional[ArchivedStay]:
        with self._lock:
            return self._records.get(stay_id)

    def list_records(self) -> List[ArchivedStay]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.archived_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# ══════════════════════════════════════════════════════════════
# DJANGO ORM ARCHIVE
# ══════════════════════════════════════════════════════════════

class DbCheckoutArchive:
    """Persists archived stays per hotel in CheckedOutStayRecord."""

    def __init__(self, hotel_id: str) -> None:
        if not hotel_id:
            raise ValueError("hotel_id must be non-empty.")
        self._hotel_id = hotel_id

    def archive(self, record: ArchivedStay) -> None:
        from django.db import transaction

        from core.checkout_history.models import CheckedOutStayRecord

        with transaction.atomic():
            if self.contains(record.stay_id):
                raise DuplicateArchiveError(record.stay_id)
            CheckedOutStayRecord.objects.create(
                hotel_id=self._hotel_id,
                stay_id=record.stay_id,
                room_number=record.room_number,
                room_type=record.room_type,
                guest_name=record.guest_name,
                status=record.status,
                check_in_date=record.check_in_date,
                check_out_date=record.check_out_date,
                archived_at=record.archived_at,
                final_bill=record.final_bill,
                service_request_ids=list(record.service_request_ids),
            )
        logger.info(
            f"Stay archived: {record.stay_id} ({record.status}) "
            f"for hotel {self._hotel_id}"
        )

    def contains(self, stay_id: str) -> bool:
        from core.checkout_history.models import CheckedOutStayRecord

        return CheckedOutStayRecord.objects.filter(
            hotel_id=self._hotel_id, stay_id=stay_id,
        ).exists()

    def get(self, stay_id: str) -> Optional[ArchivedStay]:
        from core.checkout_history.models import CheckedOutStayRecord

        row = CheckedOutStayRecord.objects.filter(
            hotel_id=self._hotel_id, stay_id=stay_id,
        ).first()
        return _to_archived_stay(row) if row is not None else None

    def list_records(self) -> List[ArchivedStay]:
        from core.checkout_history.models import CheckedOutStayRecord

        rows = CheckedOutStayRecord.objects.filter(
            hotel_id=self._hotel_id,
        ).order_by("archived_at", "id")
        return [_to_archived_stay(row) for row in rows]


def _to_archived_stay(row) -> ArchivedStay:
    return ArchivedStay(
        stay_id=row.stay_id,
        room_number=row.room_number,
        room_type=row.room_type,
        guest_name=row.guest_name,
        status=row.status,
        check_in_date=row.check_in_date,
        check_out_date=row.check_out_date,
        archived_at=row.archived_at,
        final_bill=dict(row.final_bill),
        service_request_ids=tuple(row.service_request_ids),
    )
