# coursedesk/core/tokens.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import ValidationError as PydanticValidationError

from coursedesk.core.errors import AuthenticationError, ConfigurationError
from coursedesk.schemas.token import TokenClaims

ACCESS_TTL = timedelta(hours=24)
REFRESH_TTL = timedelta(days=7)
SUPPORTED_ALGORITHMS = {"HS256", "HS384", "HS512"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Emite e valida access/refresh tokens (JWT HMAC) com um único segredo do servidor."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = ACCESS_TTL,
        refresh_ttl: timedelta = REFRESH_TTL,
        clock: Callable[[], datetime] = _now,
    ):
        if not secret or not secret.strip():
            raise ConfigurationError("SECRET_KEY is not configured")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported JWT algorithm: {algorithm}")
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock

    @property
    def access_ttl_seconds(self) -> int:
        return int(self.access_ttl.total_seconds())

    def _encode(self, payload: Dict[str, Any], ttl: timedelta) -> str:
        now = self._clock()
        payload = {
            **payload,
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_access_token(
        self,
        *,
        tenant_id: int,
        user_id: int,
        email: Optional[str],
        role: Optional[str],
        is_tenant_admin: bool,
    ) -> str:
        return self._encode(
            {
                "tenantId": tenant_id,
                "userId": user_id,
                "email": email,
                "role": role,
                "isTenantAdmin": is_tenant_admin,
                "type": "access",
            },
            self.access_ttl,
        )

    def issue_refresh_token(self, *, tenant_id: int, user_id: int) -> str:
        return self._encode(
            {
                "tenantId": tenant_id,
                "userId": user_id,
                "isTenantAdmin": user_id == 0,
                "type": "refresh",
            },
            self.refresh_ttl,
        )

    def verify(self, token: str, *, expected_type: str = "access") -> TokenClaims:
        """
        Valida assinatura, expiração e discriminador de tipo.

        Qualquer falha gera AuthenticationError; nunca devolve claims parcialmente confiáveis.
        Tokens de acesso sem ``type`` (emitidos antes do discriminador) são aceitos como access.
        """
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Missing token", code="TOKEN_MISSING")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired", code="TOKEN_EXPIRED")
        except JWTError:
            raise AuthenticationError("Invalid token", code="TOKEN_INVALID")

        if not isinstance(payload, dict):
            raise AuthenticationError("Invalid token", code="TOKEN_INVALID")
        try:
            claims = TokenClaims.model_validate(payload)
        except PydanticValidationError:
            raise AuthenticationError("Invalid token", code="TOKEN_INVALID")

        token_type = claims.type or "access"
        if token_type != expected_type:
            raise AuthenticationError("Invalid token type", code="TOKEN_INVALID")
        return claims
