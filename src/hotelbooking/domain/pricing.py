"""Tier-based stay pricing.

original = base_rate * nights
total    = original * (100 - discount) / 100

Computation uses full Decimal precision; both amounts are rounded half-up
to cents only when the breakdown is produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from hotelbooking.domain.errors import InvalidRequestError

CENTS = Decimal("0.01")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PriceBreakdown:
    original: Decimal
    total: Decimal
    discount: Decimal
    nights: int

    @property
    def savings(self) -> Decimal:
        return self.original - self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_price": float(self.original),
            "total_price": float(self.total),
            "discount_percent_applied": float(self.discount),
            "savings_amount": float(self.savings),
            "nights": self.nights,
        }


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def round_percent(percent: Decimal) -> Decimal:
    """Discounts are stored as NUMERIC(5,2); price with the stored value."""
    return percent.quantize(CENTS, rounding=ROUND_HALF_UP)


def count_nights(check_in: date, check_out: date) -> int:
    """Nights between two date-only values; check_out must be after check_in."""
    if check_out <= check_in:
        raise InvalidRequestError(
            "Check-out date must be after check-in date",
            check_in_date=check_in.isoformat(),
            check_out_date=check_out.isoformat(),
        )
    return (check_out - check_in).days


def price(base_rate: Decimal, nights: int, discount_percent: Decimal = Decimal("0")) -> PriceBreakdown:
    """Price a stay.

    Args:
        base_rate: Nightly rate of the room class.
        nights: Night count (>= 1).
        discount_percent: Client discount in [0, 100]; 0 for non-VIP. Rounded
            half-up to two decimals before use.

    Returns:
        PriceBreakdown with cent-rounded original and total.

    Raises:
        ValueError: On a negative rate, non-positive nights or discount out of range.
    """
    base_rate = Decimal(base_rate)
    discount_percent = round_percent(Decimal(discount_percent))

    if base_rate < 0:
        raise ValueError("base_rate must be non-negative")
    if nights < 1:
        raise ValueError("nights must be >= 1")
    if discount_percent < 0 or discount_percent > _HUNDRED:
        raise ValueError("discount_percent must be within [0, 100]")

    original = base_rate * nights
    total = original * (_HUNDRED - discount_percent) / _HUNDRED

    return PriceBreakdown(
        original=round_money(original),
        total=round_money(total),
        discount=discount_percent,
        nights=nights,
    )

