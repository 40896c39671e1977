"""
StayLedger Service Requests - Event Types and Payload Builders
================================================================
Engine: hotel_services
Scope:  Guest service queue. Requests are created Pending, move
        forward to In Progress and Completed, and freeze when their
        stay is archived at checkout.
"""
from __future__ import annotations

SERVICE_REQUEST_CREATED_V1        = "hotel.service_request.created.v1"
SERVICE_REQUEST_STATUS_CHANGED_V1 = "hotel.service_request.status_changed.v1"
SERVICE_REQUESTS_ARCHIVED_V1      = "hotel.service_request.archived.v1"

HOTEL_SERVICE_EVENT_TYPES = (
    SERVICE_REQUEST_CREATED_V1,
    SERVICE_REQUEST_STATUS_CHANGED_V1,
    SERVICE_REQUESTS_ARCHIVED_V1,
)


def build_request_created_payload(req, *, request_id, created_at) -> dict:
    return {
        "request_id":       request_id,
        "stay_id":          req.stay_id,
        "room_number":      req.room_number,
        "service":          req.service,
        "price":            req.price,
        "staff":            req.staff,
        "assigned_to":      req.assigned_to,
        "category":         req.category,
        "quantity":         req.quantity,
        "is_manual_charge": req.is_manual_charge,
        "created_by":       req.created_by,
        "creation_time":    created_at,
    }


def build_status_changed_payload(request_id, old_status, new_status, changed_at) -> dict:
    return {
        "request_id": request_id,
        "old_status": old_status.value,
        "new_status": new_status.value,
        "changed_at": changed_at,
    }


def build_requests_archived_payload(stay_id, request_ids, archived_at) -> dict:
    return {
        "stay_id":     stay_id,
        "request_ids": list(request_ids),
        "archived_at": archived_at,
    }
