# coursedesk/api/v1/admin.py
"""
Rotas do administrador do sistema (header X-Admin-Key, checado pelo AuthGateMiddleware).
"""
from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from coursedesk.api.deps import get_db, get_subscription_gate
from coursedesk.core.errors import ConflictError, NotFoundError
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.core.timeutil import to_iso
from coursedesk.crud.audit import record_audit
from coursedesk.crud.client import client_crud
from coursedesk.models.client import Client
from coursedesk.schemas.client import ClientCreate, ClientCreated, ClientPage, ClientSummary, StatusName
from coursedesk.schemas.subscription import (
    SubscriptionAdminView,
    SubscriptionDisable,
    SubscriptionUpdate,
    SubscriptionUpdated,
)

router = APIRouter()


def _get_client_or_404(db: Session, tenant_id: int) -> Client:
    client = client_crud.get(db, tenant_id)
    if client is None:
        raise NotFoundError("Tenant not found")
    return client


# ---------------------------------------------------------------- assinaturas
@router.get("/subscriptions/{tenant_id}", response_model=SubscriptionAdminView)
def get_subscription(
    tenant_id: int,
    db: Session = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    client = _get_client_or_404(db, tenant_id)
    record = gate.get_status(db, tenant_id)
    return SubscriptionAdminView(
        client={
            "id": client.id,
            "name": client.name,
            "email": client.email,
            "phone": client.phone,
            "createdAt": to_iso(client.created_at),
            "lastLoginAt": to_iso(client.last_login_at),
        },
        subscription=record.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.put("/subscriptions/{tenant_id}", response_model=SubscriptionUpdated, response_model_exclude_none=True)
def update_subscription(
    tenant_id: int,
    body: SubscriptionUpdate,
    db: Session = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    client = _get_client_or_404(db, tenant_id)
    record = gate.update(db, client, body)
    record_audit(db, client_id=client.id, entity="subscription", entity_id=client.id,
                 action="SUBSCRIPTION_UPDATED",
                 details={"status": record.status.value, "plan": record.plan,
                          "expiresAt": record.expires_at, "notes": body.notes})
    return SubscriptionUpdated(
        message=f"Subscription of client {tenant_id} updated",
        subscription=record.model_dump(mode="json", by_alias=True, include={"status", "plan", "expires_at"},
                                      exclude_none=True),
    )


@router.delete("/subscriptions/{tenant_id}", response_model=SubscriptionUpdated, response_model_exclude_none=True)
def disable_subscription(
    tenant_id: int,
    body: Optional[SubscriptionDisable] = Body(default=None),
    db: Session = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    client = _get_client_or_404(db, tenant_id)
    record = gate.disable(db, client, body.reason if body else None)
    record_audit(db, client_id=client.id, entity="subscription", entity_id=client.id,
                 action="SUBSCRIPTION_DISABLED", details={"reason": record.reason})
    # sessões ativas continuam no KV, mas o gate passa a recusar o tenant
    return SubscriptionUpdated(message=f"Subscription of client {tenant_id} disabled", reason=record.reason)


# -------------------------------------------------------------------- clientes
@router.get("/clients", response_model=ClientPage)
def list_clients(
    search: str = Query(default=""),
    status_filter: Optional[StatusName] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    rows, total = client_crud.search(db, search=search, status=status_filter or "",
                                     skip=(page - 1) * limit, limit=limit)
    data = []
    for c in rows:
        cached = gate.peek(c.id)
        data.append(ClientSummary(
            id=c.id,
            email=c.email,
            name=c.name,
            contact_person=c.contact_person,
            phone=c.phone,
            plan=c.plan,
            subscription_status=c.subscription_status,
            subscription_expires_at=to_iso(c.subscription_expires_at),
            max_users=c.max_users,
            created_at=to_iso(c.created_at),
            last_login_at=to_iso(c.last_login_at),
            subscription_kv=cached.model_dump(mode="json", by_alias=True, exclude_none=True) if cached else None,
        ))
    return ClientPage(data=data, total=total, page=page, limit=limit, total_pages=math.ceil(total / limit))


@router.post("/clients", response_model=ClientCreated, status_code=status.HTTP_201_CREATED)
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    email = body.email.strip().lower()
    if client_crud.get_by_email(db, email):
        raise ConflictError("Email already registered")
    client = client_crud.create(db, body)
    gate.seed(client)
    return ClientCreated(
        message="Client created",
        client={"id": client.id, "email": client.email, "name": client.name, "plan": client.plan},
    )
