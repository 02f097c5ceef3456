"""VIP status lookup with local caching and fail-open degradation.

The provider is an external authority reached over HTTP. Its answer is
cached on the client row (vip_checked_at) and trusted for 24 hours. A
provider that is slow, down or returns garbage never fails a booking: the
resolver logs the degradation and prices the booking as standard.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Protocol

import requests

from hotelbooking.domain.errors import DependencyDegradedError
from hotelbooking.domain.models import STANDARD_STATUS, Client, VipStatus
from hotelbooking.domain.normalization import normalize_vip_status, to_decimal
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import email_fingerprint, safe_log_context

logger = get_logger(__name__)

VIP_CACHE_TTL = timedelta(hours=24)

DEFAULT_VIP_API_URL = "http://mock-vip-api:3001/check-vip"
DEFAULT_VIP_API_TIMEOUT = 5.0
DEFAULT_VIP_DISCOUNT = Decimal("15")

USER_AGENT = "Hotel-Booking-API/1.0"


@dataclass(frozen=True)
class VipProviderConfig:
    """VIP provider settings.

    Attributes:
        url: check-vip endpoint.
        timeout: Seconds before a call is abandoned (connect and read).
        default_discount: Discount for a VIP answer that omits one.
    """

    url: str = DEFAULT_VIP_API_URL
    timeout: float = DEFAULT_VIP_API_TIMEOUT
    default_discount: Decimal = DEFAULT_VIP_DISCOUNT

    @property
    def health_url(self) -> str:
        if self.url.endswith("/check-vip"):
            return self.url[: -len("/check-vip")] + "/health"
        return self.url.rstrip("/") + "/health"

    @classmethod
    def from_env(cls) -> "VipProviderConfig":
        """Read VIP_API_URL, VIP_API_TIMEOUT and DEFAULT_VIP_DISCOUNT."""
        timeout_raw = os.environ.get("VIP_API_TIMEOUT", "")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_VIP_API_TIMEOUT
        except ValueError:
            timeout = DEFAULT_VIP_API_TIMEOUT

        return cls(
            url=os.environ.get("VIP_API_URL", DEFAULT_VIP_API_URL),
            timeout=timeout,
            default_discount=to_decimal(
                os.environ.get("DEFAULT_VIP_DISCOUNT"), default=DEFAULT_VIP_DISCOUNT
            ),
        )


class VipStatusProvider(Protocol):
    """External VIP authority."""

    def check_status(self, email: str) -> VipStatus:
        """Return the VIP status for a normalized email.

        Raises:
            DependencyDegradedError: The provider could not answer.
        """
        ...


class HttpVipStatusProvider:
    """VIP provider reached via HTTP POST {"email": ...}."""

    def __init__(
        self,
        config: VipProviderConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or VipProviderConfig.from_env()
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def check_status(self, email: str) -> VipStatus:
        try:
            resp = self._session.post(
                self.config.url,
                json={"email": email},
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
            body: Any = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DependencyDegradedError(
                "VIP provider unavailable",
                error_type=type(e).__name__,
            ) from e

        if not isinstance(body, dict):
            raise DependencyDegradedError("VIP provider returned a malformed body")

        return normalize_vip_status(
            body.get("isVip", False),
            body.get("tier"),
            body.get("discount"),
            default_discount=self.config.default_discount,
        )

    def service_status(self) -> dict[str, Any]:
        """Probe the provider health endpoint. Never raises."""
        try:
            resp = self._session.get(self.config.health_url, timeout=self.config.timeout)
            resp.raise_for_status()
            return {"available": True, "status": resp.json(), "url": self.config.url}
        except (requests.RequestException, ValueError) as e:
            return {"available": False, "error": type(e).__name__, "url": self.config.url}


@dataclass(frozen=True)
class VipLookup:
    """Result of resolving a client's VIP status.

    Attributes:
        status: Status to price with.
        from_cache: True when the cached client fields were used.
        degraded: True when the provider failed and the standard status
                  was substituted. Degraded results are never cached.
    """

    status: VipStatus
    from_cache: bool
    degraded: bool = False

    @property
    def should_persist(self) -> bool:
        return not self.from_cache and not self.degraded


def is_cache_fresh(checked_at: datetime | None, now: datetime) -> bool:
    if checked_at is None:
        return False
    return now - checked_at <= VIP_CACHE_TTL


class VipStatusResolver:
    """Decides between cached and provider VIP status and absorbs failures."""

    def __init__(self, provider: VipStatusProvider) -> None:
        self.provider = provider

    def lookup(self, email: str) -> VipLookup:
        """Ask the provider; degrade to the standard status on any failure."""
        try:
            status = self.provider.check_status(email)
        except Exception as e:  # provider failures must not fail a booking
            logger.warning(
                "vip provider degraded, using standard status",
                extra={
                    "extra_fields": safe_log_context(
                        email_hash=email_fingerprint(email),
                        error_type=type(e).__name__,
                    )
                },
            )
            return VipLookup(status=STANDARD_STATUS, from_cache=False, degraded=True)

        return VipLookup(status=status, from_cache=False)

    def resolve(
        self,
        client: Client | None,
        email: str,
        now: datetime,
        *,
        force_refresh: bool = False,
    ) -> VipLookup:
        """VIP status for a booking.

        Args:
            client: Existing client record, or None for a first booking.
            email: Normalized email sent to the provider.
            now: Current instant for the freshness check.
            force_refresh: Ignore a fresh cache.
        """
        if client is not None and not force_refresh and is_cache_fresh(client.vip_checked_at, now):
            return VipLookup(
                status=normalize_vip_status(client.is_vip, client.vip_tier, client.vip_discount),
                from_cache=True,
            )
        return self.lookup(email)
