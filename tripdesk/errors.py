"""Domain errors raised by the service layer.

Routers never catch these; a single exception handler installed in
``tripdesk.main`` renders them as JSON with the status code carried here.
Absence on a plain lookup is not an error: services return ``None``/``False``.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    status_code = 400
    code = "domain_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def payload(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.detail}


class ReferenceNotFound(DomainError):
    status_code = 404
    code = "reference_not_found"

    def __init__(self, kind: str, ref_id: Any):
        super().__init__(f"{kind} {ref_id} not found")
        self.kind = kind
        self.ref_id = ref_id

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(kind=self.kind, id=self.ref_id)
        return data


class SeatNotFound(DomainError):
    status_code = 404
    code = "seat_not_found"

    def __init__(self, trip_id: int, bus_id: Optional[int], number: Any):
        super().__init__(f"seat {number} of bus {bus_id} does not exist on trip {trip_id}")
        self.trip_id = trip_id
        self.bus_id = bus_id
        self.number = number


class SeatConflict(DomainError):
    status_code = 409
    code = "seat_conflict"


class LayoutError(DomainError):
    status_code = 422
    code = "layout_error"


class InvalidRequest(DomainError):
    status_code = 422
    code = "invalid_request"


class ReferenceInUse(DomainError):
    status_code = 409
    code = "reference_in_use"
