"""Explicit normalization applied before domain records are built."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from hotelbooking.domain.models import STANDARD_STATUS, STANDARD_TIER, ClientInfo, VipStatus
from hotelbooking.domain.pricing import round_percent

_HUNDRED = Decimal("100")


def normalize_email(email: str) -> str:
    """Lower-case and trim; clients are keyed on the result."""
    return email.strip().lower()


def normalize_client_info(info: ClientInfo) -> ClientInfo:
    phone = info.phone.strip() if info.phone else None
    return ClientInfo(
        first_name=info.first_name.strip(),
        last_name=info.last_name.strip(),
        email=normalize_email(info.email),
        phone=phone or None,
    )


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce numbers and numeric strings to Decimal without float rounding."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def clamp_discount(discount: Decimal) -> Decimal:
    if discount < 0:
        return Decimal("0")
    if discount > _HUNDRED:
        return _HUNDRED
    return discount


def normalize_vip_status(
    is_vip: Any,
    tier: Any,
    discount: Any,
    *,
    default_discount: Decimal | None = None,
) -> VipStatus:
    """Build a consistent VipStatus.

    Non-VIP clients always carry the standard tier and no discount. A VIP
    without an explicit discount gets default_discount. The discount is
    clamped to [0, 100] and rounded to two decimals.
    """
    if not is_vip:
        return STANDARD_STATUS

    resolved = to_decimal(discount, default=Decimal("0"))
    if resolved == 0 and default_discount is not None:
        resolved = default_discount

    tier_label = str(tier).strip().lower() if tier else ""
    if not tier_label or tier_label == STANDARD_TIER:
        tier_label = "vip"

    return VipStatus(is_vip=True, tier=tier_label, discount=round_percent(clamp_discount(resolved)))
