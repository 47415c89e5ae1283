# coursedesk/schemas/subscription.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from coursedesk.schemas.client import PlanName


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"


class SubscriptionRecord(BaseModel):
    """Projeção em cache (``tenant:<id>:subscription``) da assinatura do tenant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    status: SubscriptionStatus
    plan: Optional[str] = None
    expires_at: Optional[str] = None  # ISO-8601 UTC
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None
    expired_at: Optional[str] = None
    reason: Optional[str] = None


class SubscriptionUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    plan: PlanName = "pro"
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None


class SubscriptionDisable(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reason: Optional[str] = None


class SubscriptionAdminView(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client: Dict[str, Any]
    subscription: Dict[str, Any]


class SubscriptionUpdated(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str
    subscription: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
