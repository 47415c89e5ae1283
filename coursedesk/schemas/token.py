# coursedesk/schemas/token.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TokenType = Literal["access", "refresh"]


class TokenClaims(BaseModel):
    """Payload assinado: tenantId, userId (0 = admin do próprio tenant), email, role..."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    tenant_id: int = Field(gt=0)
    user_id: int = Field(ge=0)
    email: Optional[str] = None
    role: Optional[str] = None
    is_tenant_admin: bool = False
    type: Optional[TokenType] = None
    jti: Optional[str] = None
    iat: Optional[int] = None
    exp: int