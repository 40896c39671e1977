"""
StayLedger Storage Boundary
=============================
Feed-driven snapshot store and document hydration for one hotel.
"""
from adapters.hotel_store.snapshot_store import HotelSnapshotStore

__all__ = ["HotelSnapshotStore"]
