"""
StayLedger Change Feed - Errors
=================================
Error types for the realtime feed and the stores built on it.
"""


class FeedError(Exception):
    """Base error for change feed operations."""
    pass


class UnavailableError(FeedError):
    """
    The upstream persistence collaborator cannot be reached, or
    has not delivered a full snapshot yet.

    Callers must treat this as a degraded state. Computations are
    never silently run against an empty or stale data set.
    """

    def __init__(self, hotel_id: str, reason: str):
        self.hotel_id = hotel_id
        self.reason = reason
        super().__init__(
            f"Data for hotel '{hotel_id}' is unavailable: {reason}"
        )


class DuplicateSubscriptionError(FeedError):
    """Same handler already subscribed for this hotel."""

    def __init__(self, hotel_id: str, handler_name: str):
        self.hotel_id = hotel_id
        self.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' already subscribed "
            f"to hotel '{hotel_id}'."
        )
