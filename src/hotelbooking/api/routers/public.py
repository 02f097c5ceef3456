"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from hotelbooking.api.routes import bookings, clients, rooms

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(bookings.router)
router.include_router(clients.router)
router.include_router(rooms.router)
