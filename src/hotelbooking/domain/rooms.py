"""Available-room search with standard (non-VIP) quotes."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.pricing import count_nights, price
from hotelbooking.infra.repositories import rooms_repository


def search_available_rooms(
    cur: PgCursor,
    *,
    property_id: int,
    check_in: date,
    check_out: date,
    guest_count: int | None = None,
    room_class_id: int | None = None,
    max_rate: Decimal | None = None,
) -> list[dict[str, Any]]:
    """List bookable rooms free for the whole stay, each with a quote.

    Raises:
        InvalidRequestError: If check_out is not after check_in.
    """
    nights = count_nights(check_in, check_out)
    rooms = rooms_repository.find_available_rooms(
        cur,
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        guest_count=guest_count,
        room_class_id=room_class_id,
        max_rate=max_rate,
    )

    results = []
    for room in rooms:
        quote = price(room.room_class.base_rate, nights)
        results.append({
            **room.to_dict(),
            "pricing": {
                "original_price": float(quote.original),
                "total_price": float(quote.total),
                "nights": nights,
                "price_per_night": float(room.room_class.base_rate),
            },
        })
    return results
