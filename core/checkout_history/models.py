"""
StayLedger Checkout History - Persistent Archive Record
=========================================================
One row per archived stay. The final bill is stored as the
serialized mapping produced by the folio engine.
"""

from __future__ import annotations

import uuid

from django.db import models


class ArchivedStayStatus(models.TextChoices):
    CHECKED_OUT = "CHECKED_OUT", "Checked Out"
    CANCELLED = "CANCELLED", "Cancelled"


class CheckedOutStayRecord(models.Model):
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    hotel_id = models.CharField(max_length=128, db_index=True)
    stay_id = models.CharField(max_length=64)
    room_number = models.CharField(max_length=32)
    room_type = models.CharField(max_length=100, blank=True, default="")
    guest_name = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=ArchivedStayStatus.choices,
    )
    check_in_date = models.DateField()
    check_out_date = models.DateField()
    archived_at = models.DateTimeField()
    final_bill = models.JSONField(default=dict)
    service_request_ids = models.JSONField(default=list)

    class Meta:
        db_table = "stayledger_checkout_history"
        ordering = ["archived_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["hotel_id", "stay_id"],
                name="uq_checkout_history_hotel_stay",
            ),
        ]
        indexes = [
            models.Index(
                fields=["hotel_id", "archived_at"],
                name="idx_checkout_hotel_archived",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.stay_id} ({self.status})"
