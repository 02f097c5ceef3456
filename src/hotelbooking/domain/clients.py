"""Client directory - identity resolution and VIP cache maintenance.

Resolution happens in two phases so no network call is made while a
transaction holds row locks:

1. prepare(): read the client (if any) and consult the VIP resolver.
2. resolve_in_txn(): inside the caller's transaction, find-or-create the
   client row and cache the VIP answer when it is fresh and not degraded.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, ContextManager

from psycopg2.extensions import cursor as PgCursor

from hotelbooking.domain.errors import NotFoundError
from hotelbooking.domain.models import Client, ClientInfo
from hotelbooking.domain.normalization import normalize_client_info, normalize_vip_status
from hotelbooking.domain.vip import VIP_CACHE_TTL, VipLookup, VipStatusResolver
from hotelbooking.infra.db import txn
from hotelbooking.infra.repositories import clients_repository
from hotelbooking.infra.time import utc_now
from hotelbooking.observability.logging import get_logger
from hotelbooking.observability.redaction import email_fingerprint, safe_log_context

logger = get_logger(__name__)

TxnFactory = Callable[[], ContextManager[PgCursor]]


@dataclass(frozen=True)
class PreparedClient:
    info: ClientInfo
    vip: VipLookup


class ClientDirectory:
    def __init__(
        self,
        resolver: VipStatusResolver,
        *,
        txn_factory: TxnFactory = txn,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.resolver = resolver
        self._txn = txn_factory
        self._clock = clock

    def prepare(self, info: ClientInfo, *, force_refresh: bool = False) -> PreparedClient:
        """Normalize identity fields and resolve VIP status outside any write txn."""
        normalized = normalize_client_info(info)
        with self._txn() as cur:
            existing = clients_repository.find_client_by_email(cur, normalized.email)

        lookup = self.resolver.resolve(
            existing,
            normalized.email,
            self._clock(),
            force_refresh=force_refresh,
        )
        return PreparedClient(info=normalized, vip=lookup)

    def resolve_in_txn(self, cur: PgCursor, prepared: PreparedClient) -> tuple[Client, bool]:
        """Find-or-create the client row and cache a fresh VIP answer.

        Returns:
            Tuple of (client, created).
        """
        client, created = clients_repository.insert_client_if_absent(cur, prepared.info)
        if created:
            logger.info(
                "client created",
                extra={"extra_fields": safe_log_context(
                    client_id=client.id,
                    email_hash=email_fingerprint(client.email),
                )},
            )

        if prepared.vip.should_persist:
            client = clients_repository.update_vip_status(
                cur,
                client_id=client.id,
                status=prepared.vip.status,
                checked_at=self._clock(),
            )
        return (client, created)

    def find_or_create_client(self, info: ClientInfo) -> tuple[Client, bool]:
        """Upsert keyed on normalized email; existing names are kept."""
        prepared = self.prepare(info)
        with self._txn() as cur:
            return self.resolve_in_txn(cur, prepared)

    def register_client(self, info: ClientInfo) -> dict[str, Any]:
        """Find-or-create a client and force a VIP refresh."""
        prepared = self.prepare(info, force_refresh=True)
        with self._txn() as cur:
            client, created = self.resolve_in_txn(cur, prepared)

        return {
            "client": client,
            "is_new": created,
            "vip_status": {
                "is_vip": prepared.vip.status.is_vip,
                "tier": prepared.vip.status.tier,
                "discount": float(prepared.vip.status.discount),
                "degraded": prepared.vip.degraded,
            },
        }

    def get_vip_status(self, client_id: int, *, force_refresh: bool = False) -> dict[str, Any]:
        """Current VIP status of an existing client.

        A stale cache (or force_refresh) consults the provider and stores a
        good answer. If the provider is down the stored fields are reported
        unchanged with degraded set.

        Raises:
            NotFoundError: Unknown client_id.
        """
        with self._txn() as cur:
            client = clients_repository.get_client(cur, client_id)
        if client is None:
            raise NotFoundError("Client not found", client_id=client_id)

        lookup = self.resolver.resolve(
            client, client.email, self._clock(), force_refresh=force_refresh
        )
        if lookup.should_persist:
            with self._txn() as cur:
                client = clients_repository.update_vip_status(
                    cur,
                    client_id=client.id,
                    status=lookup.status,
                    checked_at=self._clock(),
                )

        if lookup.degraded:
            status = normalize_vip_status(client.is_vip, client.vip_tier, client.vip_discount)
        else:
            status = lookup.status

        return {
            "client": client,
            "vip_status": {
                "is_vip": status.is_vip,
                "tier": status.tier,
                "discount": float(status.discount),
                "from_cache": not lookup.should_persist,
                "degraded": lookup.degraded,
                "last_checked": (
                    client.vip_checked_at.isoformat() if client.vip_checked_at else None
                ),
            },
        }

    def refresh_stale_vip_statuses(self, batch_size: int = 10) -> dict[str, int]:
        """Re-verify every client whose cached VIP status is stale.

        Clients are processed oldest-verification first, one short
        transaction per batch. Degraded lookups leave the cache untouched
        so the next run retries them.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        with self._txn() as cur:
            clients = clients_repository.list_clients_needing_vip_check(
                cur, verified_before=self._clock() - VIP_CACHE_TTL
            )

        updated = 0
        degraded = 0
        for start in range(0, len(clients), batch_size):
            batch = clients[start:start + batch_size]
            lookups = [(client, self.resolver.lookup(client.email)) for client in batch]

            with self._txn() as cur:
                for client, lookup in lookups:
                    if lookup.degraded:
                        degraded += 1
                        continue
                    clients_repository.update_vip_status(
                        cur,
                        client_id=client.id,
                        status=lookup.status,
                        checked_at=self._clock(),
                    )
                    updated += 1

        logger.info(
            "vip refresh completed",
            extra={"extra_fields": safe_log_context(
                total=len(clients), updated=updated, degraded=degraded,
            )},
        )
        return {"total": len(clients), "updated": updated, "degraded": degraded}
