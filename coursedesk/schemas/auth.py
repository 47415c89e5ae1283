# coursedesk/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1, max_length=160)
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("email is required")
        return v


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    refresh_token: Optional[str] = None


class UserInfo(CamelModel):
    id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    is_tenant_admin: Optional[bool] = None


class ClientInfo(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    plan: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_expires_at: Optional[str] = None
    max_users: Optional[int] = None


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int


class LoginResponse(TokenResponse):
    user: UserInfo
    client: ClientInfo


class MeResponse(CamelModel):
    user: UserInfo
    client: ClientInfo


class LogoutResponse(BaseModel):
    success: bool = True
