# coursedesk/core/authorizer.py
"""
Portão de autorização executado para toda requisição.

PUBLIC  -> passa sem checagens
ADMIN   -> header X-Admin-Key comparado ao segredo do servidor
TENANT  -> token presente -> token válido -> sessão existe -> assinatura ok
           -> IdentityContext anexado à requisição

A classificação é por prefixo e acontece antes de qualquer trabalho criptográfico.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from coursedesk.core.errors import AuthenticationError, NotFoundError
from coursedesk.core.sessions import SessionStore
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.core.tokens import TokenService

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"
DEFAULT_PLAN = "basic"


class RouteClass(str, Enum):
    PUBLIC = "public"
    ADMIN = "admin"
    TENANT = "tenant"


@dataclass(frozen=True)
class RouteRules:
    """Listas de prefixos; tudo fora de ``protected_root`` é público (docs, métricas)."""

    protected_root: str = "/api/"
    public_prefixes: Tuple[str, ...] = ()
    admin_prefixes: Tuple[str, ...] = ()

    @classmethod
    def for_prefix(cls, api_prefix: str) -> "RouteRules":
        root = "/" + api_prefix.strip("/")
        return cls(
            protected_root=root + "/",
            public_prefixes=(
                f"{root}/auth/login",
                f"{root}/auth/refresh",
                f"{root}/auth/logout",
                f"{root}/health",
            ),
            admin_prefixes=(f"{root}/admin/",),
        )

    @staticmethod
    def _matches(path: str, prefix: str) -> bool:
        if prefix.endswith("/"):
            return path.startswith(prefix)
        return path == prefix or path.startswith(prefix + "/")

    def classify(self, path: str) -> RouteClass:
        if not path.startswith(self.protected_root):
            return RouteClass.PUBLIC
        if any(self._matches(path, p) for p in self.public_prefixes):
            return RouteClass.PUBLIC
        if any(self._matches(path, p) for p in self.admin_prefixes):
            return RouteClass.ADMIN
        return RouteClass.TENANT


@dataclass(frozen=True)
class IdentityContext:
    tenant_id: int
    user_id: int  # 0 = admin do próprio tenant
    email: Optional[str]
    role: str
    plan: str
    is_tenant_admin: bool = field(default=False)


@dataclass(frozen=True)
class AuthDecision:
    route_class: RouteClass
    identity: Optional[IdentityContext] = None


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        return None
    return parts[1]


class RequestAuthorizer:
    def __init__(
        self,
        *,
        rules: RouteRules,
        tokens: TokenService,
        sessions: SessionStore,
        subscriptions: SubscriptionGate,
        session_factory: Callable[[], Session],
        admin_key: Optional[str],
    ):
        self.rules = rules
        self.tokens = tokens
        self.sessions = sessions
        self.subscriptions = subscriptions
        self.session_factory = session_factory
        self._admin_key = admin_key or ""
        if not self._admin_key:
            logger.warning("ADMIN_SECRET_KEY not configured; admin routes are disabled")

    def authorize(self, path: str, headers: Mapping[str, str]) -> AuthDecision:
        route_class = self.rules.classify(path)
        if route_class is RouteClass.PUBLIC:
            return AuthDecision(route_class)
        if route_class is RouteClass.ADMIN:
            self.check_admin_key(headers.get(ADMIN_KEY_HEADER))
            return AuthDecision(route_class)
        return AuthDecision(route_class, self.authenticate(headers.get("Authorization")))

    def check_admin_key(self, presented: Optional[str]) -> None:
        if not self._admin_key or not presented or not hmac.compare_digest(
            presented.encode("utf-8"), self._admin_key.encode("utf-8")
        ):
            raise AuthenticationError("Unauthorized", code="ADMIN_UNAUTHORIZED")

    def authenticate(self, authorization: Optional[str]) -> IdentityContext:
        token = extract_bearer(authorization)
        if token is None:
            raise AuthenticationError("Missing bearer token", code="TOKEN_MISSING")

        claims = self.tokens.verify(token, expected_type="access")

        session = self.sessions.get_session(token)
        if session is None or session.tenant_id != claims.tenant_id or session.user_id != claims.user_id:
            logger.debug("Rejected token without session (tenant=%s user=%s)", claims.tenant_id, claims.user_id)
            raise AuthenticationError("Session expired", code="SESSION_EXPIRED")

        with self.session_factory() as db:
            try:
                subscription = self.subscriptions.ensure_active(db, claims.tenant_id)
            except NotFoundError:
                raise AuthenticationError("Invalid token", code="TOKEN_INVALID")

        is_tenant_admin = claims.user_id == 0
        return IdentityContext(
            tenant_id=claims.tenant_id,
            user_id=claims.user_id,
            email=claims.email,
            role=claims.role or ("admin" if is_tenant_admin else "user"),
            plan=subscription.plan or DEFAULT_PLAN,
            is_tenant_admin=is_tenant_admin,
        )
