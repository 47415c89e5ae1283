# coursedesk/schemas/client.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from coursedesk.models.client import PLANS, SUBSCRIPTION_STATUSES

# mesmos valores aceitos pelas colunas plan / subscription_status
PlanName = Literal[PLANS]
StatusName = Literal[SUBSCRIPTION_STATUSES]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClientCreate(CamelModel):  # usado pelo admin do sistema
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=160)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    plan: PlanName = "trial"
    subscription_status: Optional[StatusName] = None
    subscription_expires_at: Optional[datetime] = None
    max_users: int = Field(default=5, ge=1)


class ClientUpdate(CamelModel):  # só os campos enviados são gravados (exclude_unset)
    plan: Optional[PlanName] = None
    subscription_status: Optional[StatusName] = None
    subscription_expires_at: Optional[datetime] = None
    notes: Optional[str] = None


class ClientSummary(CamelModel):
    id: int
    email: str
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    plan: str
    subscription_status: str
    subscription_expires_at: Optional[str] = None
    max_users: int
    created_at: Optional[str] = None
    last_login_at: Optional[str] = None
    subscription_kv: Optional[Dict[str, Any]] = Field(default=None, alias="subscriptionKV")


class ClientPage(CamelModel):
    data: List[ClientSummary]
    total: int
    page: int
    limit: int
    total_pages: int


class ClientCreated(CamelModel):
    success: bool = True
    message: str
    client: Dict[str, Any]
