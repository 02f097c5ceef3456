"""Worker maintenance tasks: completion sweep and VIP cache refresh.

Both are idempotent; a scheduler may call them as often as it likes.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from hotelbooking.api.dependencies import get_reservation_service, http_error
from hotelbooking.domain.errors import InvalidRequestError
from hotelbooking.domain.reservations import ReservationService
from hotelbooking.observability.correlation import get_correlation_id
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import safe_log_context

router = APIRouter(prefix="/tasks/maintenance", tags=["tasks"])

logger = get_logger(__name__)


@router.post("/complete-reservations")
def complete_reservations(
    today: date | None = Query(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Mark active reservations whose check-out has passed as completed."""
    try:
        result = service.complete_past_reservations(today)
    except InvalidRequestError as e:
        raise http_error(e) from e
    logger.info(
        "maintenance task done",
        extra={"extra_fields": safe_log_context(
            correlationId=get_correlation_id(), task="complete-reservations", **result,
        )},
    )
    return {"ok": True, **result}


@router.post("/refresh-vip")
def refresh_vip(
    batch_size: int = Query(10, ge=1, le=100),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Re-verify clients whose cached VIP status is older than 24 hours."""
    result = service.clients.refresh_stale_vip_statuses(batch_size=batch_size)
    logger.info(
        "maintenance task done",
        extra={"extra_fields": safe_log_context(
            correlationId=get_correlation_id(), task="refresh-vip", **result,
        )},
    )
    return {"ok": True, **result}
