# coursedesk/core/subscription.py
"""
Gate de assinatura por tenant.

Leitura: registro em cache no KV (``tenant:<id>:subscription``); se ausente, é
sintetizado a partir da linha ``clients`` e gravado de volta (TTL 30 dias). Um
registro com ``expiresAt`` no passado é corrigido para ``expired`` e persistido
antes de ser usado: o status nunca melhora pela leitura.

Escrita (somente admin): sobrescreve status/plano/validade na linha ``clients`` e no
cache. É o único caminho que pode melhorar o status (ex.: expired -> active).
Uma atualização feita pelo admin pode levar algum tempo para ser vista por
requisições já roteadas para outras réplicas do KV.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from coursedesk.core.errors import NotFoundError, SubscriptionError
from coursedesk.core.kv import KVStore
from coursedesk.core.timeutil import parse_iso, to_iso, utcnow
from coursedesk.crud.client import client_crud
from coursedesk.models.client import Client
from coursedesk.schemas.client import ClientUpdate
from coursedesk.schemas.subscription import SubscriptionRecord, SubscriptionStatus, SubscriptionUpdate

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(days=30)
ADMIN_TTL = timedelta(days=365)
DEFAULT_DISABLE_REASON = "non-payment"


def subscription_key(tenant_id: int) -> str:
    return f"tenant:{tenant_id}:subscription"


class SubscriptionGate:
    def __init__(
        self,
        kv: KVStore,
        *,
        cache_ttl: timedelta = CACHE_TTL,
        admin_ttl: timedelta = ADMIN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.kv = kv
        self.cache_ttl = int(cache_ttl.total_seconds())
        self.admin_ttl = int(admin_ttl.total_seconds())
        self._clock = clock

    # ---------- leitura ----------
    def peek(self, tenant_id: int) -> Optional[SubscriptionRecord]:
        """Registro em cache, sem reidratar nem avaliar validade."""
        raw = self.kv.get(subscription_key(tenant_id))
        if raw is None:
            return None
        try:
            record = SubscriptionRecord.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Discarding malformed subscription record for tenant %s", tenant_id)
            return None
        if record.expires_at and parse_iso(record.expires_at) is None:
            logger.warning("Discarding subscription record with bad expiresAt for tenant %s", tenant_id)
            return None
        return record

    def get_status(self, db: Session, tenant_id: int) -> SubscriptionRecord:
        record = self.peek(tenant_id)
        if record is None:
            client = client_crud.get(db, tenant_id)
            if client is None:
                raise NotFoundError("Tenant not found")
            record = self.record_from_client(client)
            self._write(tenant_id, record, self.cache_ttl)
        return self._apply_expiry(tenant_id, record)

    def ensure_active(self, db: Session, tenant_id: int) -> SubscriptionRecord:
        record = self.get_status(db, tenant_id)
        if record.status == SubscriptionStatus.SUSPENDED:
            raise SubscriptionError("Subscription suspended. Contact support to reactivate it.",
                                    code="SUBSCRIPTION_SUSPENDED")
        if record.status == SubscriptionStatus.EXPIRED:
            raise SubscriptionError("Subscription expired. Contact support to renew it.",
                                    code="SUBSCRIPTION_EXPIRED")
        return record

    def record_from_client(self, client: Client) -> SubscriptionRecord:
        try:
            status = SubscriptionStatus(client.subscription_status)
        except ValueError:
            logger.warning("Tenant %s has unknown subscription status %r", client.id, client.subscription_status)
            status = SubscriptionStatus.EXPIRED
        return SubscriptionRecord(
            status=status,
            plan=client.plan,
            expires_at=to_iso(client.subscription_expires_at),
            created_at=to_iso(client.created_at),
        )

    def _apply_expiry(self, tenant_id: int, record: SubscriptionRecord) -> SubscriptionRecord:
        if record.status == SubscriptionStatus.EXPIRED:
            return record
        expires_at = parse_iso(record.expires_at)
        now = self._clock()
        if expires_at is None or expires_at > now:
            return record
        expired = record.model_copy(update={"status": SubscriptionStatus.EXPIRED, "expired_at": to_iso(now)})
        self._write(tenant_id, expired, self.cache_ttl)
        logger.info("Subscription of tenant %s lapsed (expiresAt=%s)", tenant_id, record.expires_at)
        return expired

    # ---------- escrita (admin) ----------
    def update(self, db: Session, client: Client, body: SubscriptionUpdate) -> SubscriptionRecord:
        changes = {"subscription_status": body.status.value, "plan": body.plan}
        # expiresAt omitido mantém a validade da linha; null explícito a remove.
        # O registro em cache só carrega a validade enviada.
        if "expires_at" in body.model_fields_set:
            changes["subscription_expires_at"] = body.expires_at
        if body.notes is not None:
            changes["notes"] = body.notes
        client_crud.set_subscription(db, client, ClientUpdate(**changes))
        record = SubscriptionRecord(
            status=body.status,
            plan=body.plan,
            expires_at=to_iso(body.expires_at),
            updated_at=to_iso(self._clock()),
            updated_by="admin",
        )
        self._write(client.id, record, self.admin_ttl)
        logger.info("Subscription of tenant %s set to %s/%s", client.id, record.status.value, record.plan)
        return record

    def disable(self, db: Session, client: Client, reason: Optional[str] = None) -> SubscriptionRecord:
        reason = reason or DEFAULT_DISABLE_REASON
        client = client_crud.set_subscription(
            db, client, ClientUpdate(subscription_status=SubscriptionStatus.EXPIRED.value)
        )
        now = to_iso(self._clock())
        record = SubscriptionRecord(
            status=SubscriptionStatus.EXPIRED,
            plan=client.plan,
            expires_at=to_iso(client.subscription_expires_at),
            updated_at=now,
            updated_by="admin",
            expired_at=now,
            reason=reason,
        )
        self._write(client.id, record, self.cache_ttl)
        logger.info("Subscription of tenant %s disabled (%s)", client.id, reason)
        return record

    def seed(self, client: Client) -> SubscriptionRecord:
        record = self.record_from_client(client).model_copy(update={"updated_by": "admin"})
        self._write(client.id, record, self.admin_ttl)
        return record

    def _write(self, tenant_id: int, record: SubscriptionRecord, ttl: int) -> None:
        self.kv.put(subscription_key(tenant_id), record.model_dump(mode="json", by_alias=True, exclude_none=True), ttl)
