# coursedesk/services/auth.py
"""
Fluxos de login, refresh (com rotação), logout e /me.

Todos os passos falham com um AppError tipado; nada aqui faz retry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coursedesk.core.authorizer import IdentityContext
from coursedesk.core.errors import AccountDisabledError, AuthenticationError, NotFoundError
from coursedesk.core.security_password import burn_verification, verify_and_maybe_upgrade
from coursedesk.core.sessions import SessionStore
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.core.timeutil import to_iso
from coursedesk.core.tokens import TokenService
from coursedesk.crud.client import client_crud
from coursedesk.crud.user import user_crud
from coursedesk.models.client import Client
from coursedesk.models.user import User
from coursedesk.schemas.auth import ClientInfo, LoginResponse, MeResponse, TokenResponse, UserInfo
from coursedesk.schemas.subscription import SubscriptionRecord

logger = logging.getLogger(__name__)

TENANT_ADMIN_USER_ID = 0
TENANT_ADMIN_ROLE = "admin"


def _invalid_credentials() -> AuthenticationError:
    # mesma resposta para e-mail inexistente e senha errada
    return AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")


@dataclass(frozen=True)
class _Principal:
    client: Client
    user: Optional[User]  # None = login da própria conta (admin do tenant)
    new_hash: Optional[str] = None

    @property
    def user_id(self) -> int:
        return self.user.id if self.user is not None else TENANT_ADMIN_USER_ID

    @property
    def email(self) -> str:
        return self.user.email if self.user is not None else self.client.email

    @property
    def role(self) -> str:
        return self.user.role if self.user is not None else TENANT_ADMIN_ROLE

    @property
    def name(self) -> str:
        if self.user is not None:
            return self.user.name
        return self.client.contact_person or self.client.name

    @property
    def is_tenant_admin(self) -> bool:
        return self.user is None


class AuthService:
    def __init__(self, *, tokens: TokenService, sessions: SessionStore, subscriptions: SubscriptionGate):
        self.tokens = tokens
        self.sessions = sessions
        self.subscriptions = subscriptions

    # ------------------------------------------------------------------ login
    def login(self, db: Session, email: str, password: str) -> LoginResponse:
        principal = self._resolve_principal(db, email, password)
        subscription = self.subscriptions.ensure_active(db, principal.client.id)

        access, refresh = self._issue_pair(principal.client.id, principal.user_id,
                                           principal.email, principal.role, principal.is_tenant_admin)
        self._touch_last_login(db, principal)
        logger.info("Login ok tenant=%s user=%s", principal.client.id, principal.user_id)

        return LoginResponse(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.tokens.access_ttl_seconds,
            user=UserInfo(id=principal.user_id, email=principal.email, name=principal.name, role=principal.role),
            client=ClientInfo(
                id=principal.client.id,
                name=principal.client.name,
                plan=subscription.plan,
                subscription_status=subscription.status.value,
                subscription_expires_at=subscription.expires_at,
            ),
        )

    def _resolve_principal(self, db: Session, email: str, password: str) -> _Principal:
        # 1) usuários de qualquer tenant com este e-mail (o tenant ainda é desconhecido)
        candidates = user_crud.list_by_email(db, email)
        if candidates:
            for user in candidates:
                ok, new_hash = verify_and_maybe_upgrade(password, user.password_hash)
                if not ok:
                    continue
                if not user.is_active:
                    logger.info("Login refused for disabled user %s", user.id)
                    raise AccountDisabledError("Account disabled")
                client = client_crud.get(db, user.client_id)
                if client is None:
                    raise NotFoundError("Tenant not found")
                return _Principal(client=client, user=user, new_hash=new_hash)
            logger.info("Login failed: bad password")
            raise _invalid_credentials()

        # 2) login da própria conta do tenant
        client = client_crud.get_by_email(db, email)
        if client is None:
            burn_verification(password)
            logger.info("Login failed: unknown email")
            raise _invalid_credentials()
        ok, new_hash = verify_and_maybe_upgrade(password, client.password_hash)
        if not ok:
            logger.info("Login failed: bad password")
            raise _invalid_credentials()
        return _Principal(client=client, user=None, new_hash=new_hash)

    def _touch_last_login(self, db: Session, principal: _Principal) -> None:
        try:
            if principal.user is not None:
                user_crud.touch_last_login(db, principal.user, principal.new_hash)
            else:
                client_crud.touch_last_login(db, principal.client, principal.new_hash)
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Could not update last login for tenant=%s user=%s",
                           principal.client.id, principal.user_id, exc_info=True)

    # ---------------------------------------------------------------- refresh
    def refresh(self, db: Session, refresh_token: str) -> TokenResponse:
        """
        Rotaciona o par de tokens.

        Ordem: emitir o novo par, gravar os novos registros, só então apagar o registro
        antigo. O KV é eventualmente consistente e não há check-then-act atômico: duas
        chamadas concorrentes com o mesmo refresh token podem ambas ver o registro e
        ambas emitir um par válido. Isso é aceito, não corrigido.
        """
        claims = self.tokens.verify(refresh_token, expected_type="refresh")
        record = self.sessions.get_refresh(refresh_token)
        if record is None or record.tenant_id != claims.tenant_id or record.user_id != claims.user_id:
            raise AuthenticationError("Refresh token expired or revoked", code="REFRESH_REVOKED")

        client = client_crud.get(db, claims.tenant_id)
        if client is None:
            raise NotFoundError("Tenant not found")

        user: Optional[User] = None
        if claims.user_id != TENANT_ADMIN_USER_ID:
            user = user_crud.get_in_tenant(db, claims.user_id, client.id)
            if user is None:
                raise AuthenticationError("Invalid token", code="TOKEN_INVALID")
            if not user.is_active:
                raise AccountDisabledError("Account disabled")

        self.subscriptions.ensure_active(db, client.id)

        principal = _Principal(client=client, user=user)
        access, refresh = self._issue_pair(client.id, principal.user_id,
                                           principal.email, principal.role, principal.is_tenant_admin)
        self.sessions.revoke_refresh(refresh_token)
        logger.info("Refresh rotated tenant=%s user=%s", client.id, principal.user_id)
        return TokenResponse(access_token=access, refresh_token=refresh, expires_in=self.tokens.access_ttl_seconds)

    def _issue_pair(self, tenant_id: int, user_id: int, email: str, role: str, is_tenant_admin: bool) -> Tuple[str, str]:
        access = self.tokens.issue_access_token(
            tenant_id=tenant_id, user_id=user_id, email=email, role=role, is_tenant_admin=is_tenant_admin,
        )
        refresh = self.tokens.issue_refresh_token(tenant_id=tenant_id, user_id=user_id)
        self.sessions.create_session(access, tenant_id=tenant_id, user_id=user_id, email=email)
        self.sessions.create_refresh(refresh, tenant_id=tenant_id, user_id=user_id)
        return access, refresh

    # ----------------------------------------------------------------- logout
    def logout(self, access_token: Optional[str], refresh_token: Optional[str]) -> None:
        """Idempotente; erros do KV são registrados e engolidos."""
        if access_token:
            try:
                self.sessions.revoke_session(access_token)
            except Exception:
                logger.warning("Session revocation failed during logout", exc_info=True)
        if refresh_token:
            try:
                self.sessions.revoke_refresh(refresh_token)
            except Exception:
                logger.warning("Refresh revocation failed during logout", exc_info=True)
        logger.info("Logout (session=%s, refresh=%s)", bool(access_token), bool(refresh_token))

    # --------------------------------------------------------------------- me
    def me(self, db: Session, identity: IdentityContext) -> MeResponse:
        client = client_crud.get(db, identity.tenant_id)
        if client is None:
            raise NotFoundError("Tenant not found")
        user = None
        if identity.user_id != TENANT_ADMIN_USER_ID:
            user = user_crud.get_in_tenant(db, identity.user_id, client.id)
        principal = _Principal(client=client, user=user)

        cached: Optional[SubscriptionRecord] = self.subscriptions.peek(client.id)
        return MeResponse(
            user=UserInfo(
                id=identity.user_id,
                email=principal.email if user is not None or identity.is_tenant_admin else identity.email,
                name=principal.name,
                role=user.role if user is not None else identity.role,
                is_tenant_admin=identity.is_tenant_admin,
            ),
            client=ClientInfo(
                id=client.id,
                name=client.name,
                email=client.email,
                plan=cached.plan if cached and cached.plan else client.plan,
                subscription_status=cached.status.value if cached else client.subscription_status,
                subscription_expires_at=cached.expires_at if cached else to_iso(client.subscription_expires_at),
                max_users=client.max_users,
            ),
        )
