"""
StayLedger Service Requests - Ledger
======================================
Append-mostly log of guest service requests.

Rules:
- Status only moves forward: PENDING -> IN_PROGRESS -> COMPLETED
  (skipping IN_PROGRESS is allowed)
- Reaching COMPLETED stamps completion_time from the injected clock
- Requests archived with their stay at checkout are frozen
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from threading import Lock
from typing import Dict, Iterable, List, Optional

from core.time import Clock, get_default_clock
from engines.hotel_services.commands import CreateServiceRequest
from engines.hotel_services.errors import (
    InvalidStatusTransitionError,
    UnknownServiceRequestError,
)
from engines.hotel_services.events import (
    SERVICE_REQUEST_CREATED_V1,
    SERVICE_REQUEST_STATUS_CHANGED_V1,
    SERVICE_REQUESTS_ARCHIVED_V1,
    build_request_created_payload,
    build_requests_archived_payload,
    build_status_changed_payload,
)
from engines.hotel_services.models import ServiceRequest, ServiceRequestStatus

logger = logging.getLogger("stayledger.services")


class ServiceRequestLedger:
    """In-memory ledger of service requests for one hotel."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or get_default_clock()
        self._lock = Lock()
        self._events: List[dict] = []
        self._requests: Dict[str, ServiceRequest] = {}

    def _record(self, event_type: str, payload: dict) -> None:
        self._events.append({"event_type": event_type, "payload": payload})

    # ── commands ──────────────────────────────────────────────

    def create_request(self, req: CreateServiceRequest) -> ServiceRequest:
        request_id = req.request_id or uuid.uuid4().hex
        created_at = self._clock.now_utc()
        request = ServiceRequest(
            request_id=request_id,
            room_number=req.room_number,
            service=req.service,
            creation_time=created_at,
            stay_id=req.stay_id,
            price=req.price,
            staff=req.staff,
            assigned_to=req.assigned_to,
            category=req.category,
            quantity=req.quantity,
            is_manual_charge=req.is_manual_charge,
            created_by=req.created_by,
        )
        with self._lock:
            if request_id in self._requests:
                raise ValueError(f"service request '{request_id}' already exists.")
            self._requests[request_id] = request
            self._record(
                SERVICE_REQUEST_CREATED_V1,
                build_request_created_payload(
                    req, request_id=request_id, created_at=created_at
                ),
            )
        logger.info(
            f"Service request {request_id} created: {req.service} "
            f"for room {req.room_number}"
        )
        return request

    def update_status(
        self, request_id: str, status: ServiceRequestStatus
    ) -> ServiceRequest:
        with self._lock:
            request = self._requests.get(request_id)
            if request is None:
                raise UnknownServiceRequestError(request_id)
            if request.archived:
                raise InvalidStatusTransitionError(
                    request_id, request.status.value, status.value,
                    "Archived requests are immutable.",
                )
            if status.rank <= request.status.rank:
                raise InvalidStatusTransitionError(
                    request_id, request.status.value, status.value
                )
            old_status = request.status
            changed_at = self._clock.now_utc()
            request.status = status
            if status is ServiceRequestStatus.COMPLETED:
                request.completion_time = changed_at
            self._record(
                SERVICE_REQUEST_STATUS_CHANGED_V1,
                build_status_changed_payload(
                    request_id, old_status, status, changed_at
                ),
            )
        logger.info(
            f"Service request {request_id}: {old_status.value} -> {status.value}"
        )
        return request

    def start(self, request_id: str) -> ServiceRequest:
        return self.update_status(request_id, ServiceRequestStatus.IN_PROGRESS)

    def complete(self, request_id: str) -> ServiceRequest:
        return self.update_status(request_id, ServiceRequestStatus.COMPLETED)

    def archive_for_stay(self, stay_id: str) -> List[ServiceRequest]:
        """Freeze every live request of a stay and return them."""
        with self._lock:
            archived = [
                r for r in self._requests.values()
                if r.stay_id == stay_id and not r.archived
            ]
            for request in archived:
                request.archived = True
            archived.sort(key=lambda r: r.creation_time)
            self._record(
                SERVICE_REQUESTS_ARCHIVED_V1,
                build_requests_archived_payload(
                    stay_id, [r.request_id for r in archived],
                    self._clock.now_utc(),
                ),
            )
        return archived

    # ── hydration ─────────────────────────────────────────────

    def load(self, requests: Iterable[ServiceRequest]) -> None:
        """Replace the whole ledger with a snapshot."""
        with self._lock:
            self._requests = {r.request_id: r for r in requests}

    def upsert(self, request: ServiceRequest) -> None:
        with self._lock:
            self._requests[request.request_id] = request

    def remove(self, request_id: str) -> Optional[ServiceRequest]:
        with self._lock:
            return self._requests.pop(request_id, None)

    # ── queries ───────────────────────────────────────────────

    def get(self, request_id: str) -> Optional[ServiceRequest]:
        return self._requests.get(request_id)

    def list_requests(self) -> List[ServiceRequest]:
        with self._lock:
            return sorted(self._requests.values(), key=lambda r: r.creation_time)

    def pending_queue(self) -> List[ServiceRequest]:
        """Pending requests, oldest first."""
        return [
            r for r in self.list_requests()
            if r.status is ServiceRequestStatus.PENDING and not r.archived
        ]

    def list_for_stay(self, stay_id: str) -> List[ServiceRequest]:
        return self.list_for_stays({stay_id})

    def list_for_stays(self, stay_ids: Iterable[str]) -> List[ServiceRequest]:
        wanted = set(stay_ids)
        return [r for r in self.list_requests() if r.stay_id in wanted]

    def snapshot(self) -> List[ServiceRequest]:
        """Detached copies, safe to hand to pure computations."""
        return [replace(r) for r in self.list_requests()]

    @property
    def event_count(self) -> int:
        return len(self._events)
