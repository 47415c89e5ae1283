# coursedesk/api/deps.py
from typing import Generator, Optional

from fastapi import Header, Request
from sqlalchemy.orm import Session

from coursedesk.core.authorizer import IdentityContext, extract_bearer
from coursedesk.core.errors import AuthenticationError
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.services.auth import AuthService


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_subscription_gate(request: Request) -> SubscriptionGate:
    return request.app.state.subscriptions


# ----------------------------------------------------------------------
# Identidade resolvida pelo AuthGateMiddleware (única fonte do contexto)
# ----------------------------------------------------------------------
def get_identity(request: Request) -> IdentityContext:
    identity = getattr(request.state, "identity", None)
    if not isinstance(identity, IdentityContext):
        raise AuthenticationError("Not authenticated", code="TOKEN_MISSING")
    return identity


def get_optional_bearer(authorization: Optional[str] = Header(None, alias="Authorization")) -> Optional[str]:
    return extract_bearer(authorization)
