"""Read-only booking statistics."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.errors import InvalidRequestError
from hotelbooking.domain.pricing import round_money
from hotelbooking.infra.repositories import reservations_repository


def percentage(count: int, total: int) -> float:
    """count / total * 100 rounded to 2 places; 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 2)


def summarize(counts: dict[str, Any]) -> dict[str, Any]:
    """Shape raw aggregate counts into the stats block."""
    total = counts["total"]
    revenue: Decimal = counts["revenue"]
    return {
        "total_bookings": total,
        "active_bookings": counts["active"],
        "cancelled_bookings": counts["cancelled"],
        "completed_bookings": counts["completed"],
        "vip_bookings": counts["vip"],
        "total_revenue": float(round_money(revenue)),
        "cancellation_rate": percentage(counts["cancelled"], total),
        "vip_rate": percentage(counts["vip"], total),
    }


def booking_stats(
    cur: PgCursor,
    *,
    property_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict[str, Any]:
    """Aggregate reservations, optionally by owning property and check-in range.

    Raises:
        InvalidRequestError: If date_from is after date_to.
    """
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidRequestError(
            "date_from must not be after date_to",
            date_from=date_from.isoformat(),
            date_to=date_to.isoformat(),
        )

    counts = reservations_repository.aggregate_stats(
        cur,
        property_id=property_id,
        date_from=date_from,
        date_to=date_to,
    )
    return summarize(counts)
