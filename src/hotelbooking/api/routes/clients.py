"""Client endpoints: registration, VIP status and booking history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from hotelbooking.api.dependencies import get_reservation_service, http_error
from hotelbooking.api.schemas import ClientInfoIn
from hotelbooking.domain.errors import BookingError
from hotelbooking.domain.lifecycle import ALL_STATUSES
from hotelbooking.domain.reservations import ReservationService
from hotelbooking.infra.time import utc_now

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("")
def register_client(
    body: ClientInfoIn,
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Find-or-create a client and refresh their VIP status."""
    try:
        result = service.clients.register_client(body.to_domain())
    except BookingError as e:
        raise http_error(e) from e
    return {
        "success": True,
        "client": result["client"].to_dict(),
        "is_new": result["is_new"],
        "vip_status": result["vip_status"],
    }


@router.get("/{client_id}/bookings")
def list_client_bookings(
    client_id: int = Path(..., gt=0),
    status: str | None = Query(None, pattern="^(" + "|".join(ALL_STATUSES) + ")$"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        page = service.list_client_reservations(
            client_id, status=status, limit=limit, offset=offset
        )
    except BookingError as e:
        raise http_error(e) from e

    now = utc_now()
    return {
        "success": True,
        "bookings": [r.to_dict(now) for r in page["reservations"]],
        "pagination": {
            "total": page["total"],
            "limit": limit,
            "offset": offset,
            "page": page["page"],
            "total_pages": page["total_pages"],
        },
    }


@router.get("/{client_id}/vip-status")
def client_vip_status(
    client_id: int = Path(..., gt=0),
    force_refresh: bool = Query(False),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Cached VIP status, re-checked with the provider when stale or forced."""
    try:
        result = service.clients.get_vip_status(client_id, force_refresh=force_refresh)
    except BookingError as e:
        raise http_error(e) from e
    return {
        "success": True,
        "client": result["client"].to_dict(),
        "vip_status": result["vip_status"],
    }
