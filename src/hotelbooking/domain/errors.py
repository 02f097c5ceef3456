"""Typed errors raised by the reservation engine.

Every error aborts the enclosing transaction (txn() rolls back on any
exception) except DependencyDegradedError, which the VIP resolver absorbs.
"""

from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for reservation engine errors."""

    code = "booking_error"

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class NotFoundError(BookingError):
    """Room, client or reservation does not exist."""

    code = "not_found"


class InvalidRequestError(BookingError):
    """Capacity exceeded, bad date ordering, or room not bookable."""

    code = "invalid_request"


class ConflictError(BookingError):
    """An overlapping active reservation exists for the room."""

    code = "conflict"


class LifecycleViolationError(BookingError):
    """Mutation attempted on a terminal reservation or inside the cutoff."""

    code = "lifecycle_violation"


class DependencyDegradedError(BookingError):
    """The VIP status provider could not be consulted."""

    code = "dependency_degraded"
