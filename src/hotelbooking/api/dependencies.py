"""Engine dependencies for the HTTP layer (overridable in tests)."""

from fastapi import HTTPException

from hotelbooking.domain.errors import (
    BookingError,
    ConflictError,
    InvalidRequestError,
    LifecycleViolationError,
    NotFoundError,
)
from hotelbooking.domain.reservations import ReservationService, build_reservation_service

_STATUS_BY_ERROR: dict[type[BookingError], int] = {
    NotFoundError: 404,
    InvalidRequestError: 400,
    ConflictError: 409,
    LifecycleViolationError: 409,
}

# Module-level engine (singleton), built on first use
_service: ReservationService | None = None


def get_reservation_service() -> ReservationService:
    """Get the reservation engine (allows override in tests)."""
    global _service
    if _service is None:
        _service = build_reservation_service()
    return _service


def http_error(exc: BookingError) -> HTTPException:
    """Map an engine error to a 4xx response; anything unmapped is a 500."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.to_dict())
    return HTTPException(status_code=500, detail={"code": exc.code, "message": "internal error"})
