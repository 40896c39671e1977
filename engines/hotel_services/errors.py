"""StayLedger Service Requests - Errors"""


class ServiceRequestError(Exception):
    pass


class UnknownServiceRequestError(ServiceRequestError, LookupError):
    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"service request '{request_id}' not found.")


class InvalidStatusTransitionError(ServiceRequestError):
    def __init__(self, request_id: str, current: str, requested: str, detail: str = ""):
        self.request_id = request_id
        self.current = current
        self.requested = requested
        message = (
            f"Service request '{request_id}' cannot move from "
            f"{current} to {requested}."
        )
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
