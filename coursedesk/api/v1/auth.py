# coursedesk/api/v1/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from coursedesk.api.deps import get_auth_service, get_db, get_identity, get_optional_bearer
from coursedesk.core.authorizer import IdentityContext
from coursedesk.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    TokenResponse,
)
from coursedesk.services.auth import AuthService


router = APIRouter()


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return service.login(db, body.email, body.password)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    body: RefreshRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return service.refresh(db, body.refresh_token)


async def _read_logout_body(request: Request) -> Optional[LogoutRequest]:
    raw = await request.body()
    if not raw:
        return None
    try:
        return LogoutRequest.model_validate_json(raw)
    except PydanticValidationError:
        # corpo inválido não impede o logout
        return None


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    access_token: Optional[str] = Depends(get_optional_bearer),
    service: AuthService = Depends(get_auth_service),
):
    body = await _read_logout_body(request)
    await run_in_threadpool(service.logout, access_token, body.refresh_token if body else None)
    return LogoutResponse(success=True)


@router.get("/me", response_model=MeResponse, response_model_exclude_none=True)
def me(
    identity: IdentityContext = Depends(get_identity),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return service.me(db, identity)
