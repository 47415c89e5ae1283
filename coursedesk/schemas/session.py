# coursedesk/schemas/session.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SessionRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    tenant_id: int
    user_id: int
    email: Optional[str] = None
    created_at: Optional[str] = None  # ISO-8601 UTC


class RefreshRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    tenant_id: int
    user_id: int
    created_at: Optional[str] = None
