"""Room availability search."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from hotelbooking.api.dependencies import get_reservation_service, http_error
from hotelbooking.domain.errors import BookingError
from hotelbooking.domain.models import MAX_GUESTS
from hotelbooking.domain.reservations import ReservationService

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("/available")
def available_rooms(
    property_id: int = Query(..., gt=0),
    check_in: date = Query(...),
    check_out: date = Query(...),
    guest_count: int | None = Query(None, ge=1, le=MAX_GUESTS),
    room_class_id: int | None = Query(None, gt=0),
    max_rate: Decimal | None = Query(None, gt=0),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Rooms free for the whole stay, with a standard (non-VIP) quote each."""
    try:
        rooms = service.find_available_rooms(
            property_id=property_id,
            check_in=check_in,
            check_out=check_out,
            guest_count=guest_count,
            room_class_id=room_class_id,
            max_rate=max_rate,
        )
    except BookingError as e:
        raise http_error(e) from e
    return {"success": True, "rooms": rooms, "count": len(rooms)}
