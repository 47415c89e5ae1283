# coursedesk/core/sessions.py
"""
Registros revogáveis de sessão/refresh.

A chave é derivada dos últimos 32 caracteres do token (``session:<...>`` /
``refresh:<...>``). Um registro presente significa "emitido e não revogado", não
"criptograficamente válido": a expiração do token é checada pelo TokenService.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from coursedesk.core.kv import KVStore
from coursedesk.core.timeutil import to_iso, utcnow
from coursedesk.schemas.session import RefreshRecord, SessionRecord

logger = logging.getLogger(__name__)

KEY_SUFFIX_LENGTH = 32
SESSION_PREFIX = "session:"
REFRESH_PREFIX = "refresh:"
SESSION_TTL_SECONDS = 86400
REFRESH_TTL_SECONDS = 7 * 86400


def _fragment(token: str) -> str:
    return token[-KEY_SUFFIX_LENGTH:]


def session_key(access_token: str) -> str:
    return f"{SESSION_PREFIX}{_fragment(access_token)}"


def refresh_key(refresh_token: str) -> str:
    return f"{REFRESH_PREFIX}{_fragment(refresh_token)}"


class SessionStore:
    def __init__(
        self,
        kv: KVStore,
        *,
        session_ttl: int = SESSION_TTL_SECONDS,
        refresh_ttl: int = REFRESH_TTL_SECONDS,
    ):
        self.kv = kv
        self.session_ttl = session_ttl
        self.refresh_ttl = refresh_ttl

    # ---------- sessão (access token) ----------
    def create_session(self, access_token: str, *, tenant_id: int, user_id: int, email: Optional[str]) -> SessionRecord:
        record = SessionRecord(tenant_id=tenant_id, user_id=user_id, email=email, created_at=to_iso(utcnow()))
        self.kv.put(session_key(access_token), record.model_dump(by_alias=True), self.session_ttl)
        return record

    def get_session(self, access_token: str) -> Optional[SessionRecord]:
        raw = self.kv.get(session_key(access_token))
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Discarding malformed session record")
            return None

    def revoke_session(self, access_token: str) -> None:
        self.kv.delete(session_key(access_token))

    # ---------- refresh ----------
    def create_refresh(self, refresh_token: str, *, tenant_id: int, user_id: int) -> RefreshRecord:
        record = RefreshRecord(tenant_id=tenant_id, user_id=user_id, created_at=to_iso(utcnow()))
        self.kv.put(refresh_key(refresh_token), record.model_dump(by_alias=True), self.refresh_ttl)
        return record

    def get_refresh(self, refresh_token: str) -> Optional[RefreshRecord]:
        raw = self.kv.get(refresh_key(refresh_token))
        if raw is None:
            return None
        try:
            return RefreshRecord.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Discarding malformed refresh record")
            return None

    def revoke_refresh(self, refresh_token: str) -> None:
        self.kv.delete(refresh_key(refresh_token))
