"""Booking endpoints: create, read, list, update, cancel and stats."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query

from hotelbooking.api.dependencies import get_reservation_service, http_error
from hotelbooking.api.schemas import CancelBookingIn, CreateBookingIn, UpdateBookingIn
from hotelbooking.domain.errors import BookingError
from hotelbooking.domain.lifecycle import ALL_STATUSES
from hotelbooking.domain.reservations import ReservationService
from hotelbooking.infra.time import utc_now
from hotelbooking.observability.correlation import get_correlation_id
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import safe_log_context

router = APIRouter(prefix="/bookings", tags=["bookings"])

logger = get_logger(__name__)


def _fail(exc: BookingError, action: str) -> HTTPException:
    logger.info(
        "booking request rejected",
        extra={"extra_fields": safe_log_context(
            correlationId=get_correlation_id(),
            action=action,
            code=exc.code,
        )},
    )
    return http_error(exc)


@router.post("", status_code=201)
def create_booking(
    body: CreateBookingIn,
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Create a reservation; VIP clients get their discount applied."""
    try:
        result = service.create_reservation(body.to_domain())
    except BookingError as e:
        raise _fail(e, "create") from e
    return {"success": True, **result.to_dict(utc_now())}


@router.get("/stats")
def booking_stats(
    property_id: int | None = Query(None, gt=0),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Aggregate booking statistics for an optional property/date window."""
    try:
        stats = service.get_stats(property_id=property_id, date_from=date_from, date_to=date_to)
    except BookingError as e:
        raise _fail(e, "stats") from e
    return {"success": True, "stats": stats}


@router.get("")
def list_bookings(
    client_id: int | None = Query(None, gt=0),
    room_id: int | None = Query(None, gt=0),
    status: str | None = Query(None, pattern="^(" + "|".join(ALL_STATUSES) + ")$"),
    check_in_from: date | None = Query(None),
    check_in_to: date | None = Query(None),
    vip_only: bool = Query(False),
    sort: str = Query("created_at"),
    order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Filtered booking listing; sort is one of created_at, updated_at, check_in_date, price."""
    offset = (page - 1) * limit
    try:
        result = service.search_reservations(
            client_id=client_id,
            room_id=room_id,
            status=status,
            check_in_from=check_in_from,
            check_in_to=check_in_to,
            vip_only=vip_only,
            sort=sort,
            order=order,
            limit=limit,
            offset=offset,
        )
    except BookingError as e:
        raise _fail(e, "list") from e

    now = utc_now()
    return {
        "success": True,
        "bookings": [r.to_dict(now) for r in result["reservations"]],
        "pagination": {
            "total": result["total"],
            "limit": limit,
            "offset": offset,
            "page": result["page"],
            "total_pages": result["total_pages"],
        },
    }


@router.get("/{token}")
def get_booking(
    token: str = Path(..., description="Reservation token"),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        reservation = service.get_reservation(token)
    except BookingError as e:
        raise _fail(e, "get") from e
    return {"success": True, "booking": reservation.to_dict(utc_now())}


@router.put("/{token}")
def update_booking(
    body: UpdateBookingIn,
    token: str = Path(..., description="Reservation token"),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        reservation = service.update_reservation(token, body.to_domain())
    except BookingError as e:
        raise _fail(e, "update") from e
    return {"success": True, "booking": reservation.to_dict(utc_now())}


@router.post("/{token}/actions/cancel")
def cancel_booking(
    token: str = Path(..., description="Reservation token"),
    body: CancelBookingIn | None = Body(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Cancel an active booking more than 24 hours before check-in."""
    reason = body.reason if body else None
    try:
        reservation = service.cancel_reservation(token, reason)
    except BookingError as e:
        raise _fail(e, "cancel") from e
    return {"success": True, "booking": reservation.to_dict(utc_now())}
