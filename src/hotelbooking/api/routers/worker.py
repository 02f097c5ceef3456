"""Worker/internal routes (APP_ROLE=worker)."""

from fastapi import APIRouter, Depends

from hotelbooking.api.dependencies import get_reservation_service
from hotelbooking.api.routes import maintenance
from hotelbooking.domain.reservations import ReservationService

router = APIRouter()


@router.get("/tasks/health")
def tasks_health() -> dict:
    """Tasks subsystem health check."""
    return {"status": "ok", "subsystem": "tasks"}


@router.get("/internal/vip-provider")
def vip_provider_status(
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Reachability of the external VIP provider."""
    provider = service.clients.resolver.provider
    probe = getattr(provider, "service_status", None)
    if probe is None:
        return {"available": None, "detail": "provider has no health probe"}
    return probe()


router.include_router(maintenance.router)
