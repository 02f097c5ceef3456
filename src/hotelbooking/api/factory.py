"""FastAPI application factory with role-based route mounting.

public: health, bookings, clients, room search
worker: everything in public plus maintenance tasks and internal probes
"""

import os
import time
from typing import Literal

from fastapi import FastAPI, Request, Response

from hotelbooking.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import safe_log_context

from .routers import public, worker

AppRole = Literal["public", "worker"]

logger = get_logger(__name__)


def create_app(role: AppRole | None = None) -> FastAPI:
    """Build the HTTP adapter for the reservation engine.

    Args:
        role: "public" or "worker". If None, APP_ROLE is used (default "public").
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]

    app = FastAPI(title="Hotel Booking", docs_url=None, redoc_url=None)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            logger.info(
                "request completed",
                extra={"extra_fields": safe_log_context(
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )},
            )
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    if role == "worker":
        app.include_router(worker.router)

    return app
