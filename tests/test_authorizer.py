from datetime import timedelta

import pytest

from coursedesk.core.authorizer import RequestAuthorizer, RouteClass, RouteRules
from coursedesk.core.errors import AuthenticationError, SubscriptionError
from coursedesk.core.sessions import SessionStore
from coursedesk.core.subscription import SubscriptionGate, subscription_key
from coursedesk.core.timeutil import to_iso, utcnow
from coursedesk.core.tokens import TokenService

from conftest import bearer


@pytest.fixture
def rules():
    return RouteRules.for_prefix("/api")


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/api/auth/login", RouteClass.PUBLIC),
        ("/api/auth/refresh", RouteClass.PUBLIC),
        ("/api/auth/logout", RouteClass.PUBLIC),
        ("/api/health", RouteClass.PUBLIC),
        ("/api/admin/subscriptions/1", RouteClass.ADMIN),
        ("/api/admin/clients", RouteClass.ADMIN),
        ("/api/auth/me", RouteClass.TENANT),
        ("/api/courses", RouteClass.TENANT),
        ("/api/auth/login-as", RouteClass.TENANT),
        ("/api/healthz", RouteClass.TENANT),
        ("/docs", RouteClass.PUBLIC),
        ("/metrics", RouteClass.PUBLIC),
    ],
)
def test_route_classification(rules, path, expected):
    assert rules.classify(path) is expected


def test_rules_follow_the_api_prefix():
    rules = RouteRules.for_prefix("v2/")
    assert rules.classify("/v2/auth/login") is RouteClass.PUBLIC
    assert rules.classify("/v2/admin/clients") is RouteClass.ADMIN
    assert rules.classify("/v2/auth/me") is RouteClass.TENANT
    assert rules.classify("/api/auth/me") is RouteClass.PUBLIC


@pytest.fixture
def parts(kv, session_factory):
    tokens = TokenService("authorizer-secret")
    sessions = SessionStore(kv)
    gate = SubscriptionGate(kv)
    authorizer = RequestAuthorizer(
        rules=RouteRules.for_prefix("/api"),
        tokens=tokens,
        sessions=sessions,
        subscriptions=gate,
        session_factory=session_factory,
        admin_key="s3cr3t",
    )
    return authorizer, tokens, sessions


def _signed_in(tokens, sessions, tenant_id, user_id=0):
    token = tokens.issue_access_token(tenant_id=tenant_id, user_id=user_id, email="x@acme.example.com",
                                      role="admin", is_tenant_admin=user_id == 0)
    sessions.create_session(token, tenant_id=tenant_id, user_id=user_id, email="x@acme.example.com")
    return token


def test_public_route_needs_nothing(parts):
    authorizer, _, _ = parts
    decision = authorizer.authorize("/api/auth/login", {})
    assert decision.route_class is RouteClass.PUBLIC
    assert decision.identity is None


def test_admin_key(parts):
    authorizer, _, _ = parts
    assert authorizer.authorize("/api/admin/clients", {"X-Admin-Key": "s3cr3t"}).identity is None
    for headers in ({}, {"X-Admin-Key": "wrong"}):
        with pytest.raises(AuthenticationError) as exc:
            authorizer.authorize("/api/admin/clients", headers)
        assert exc.value.code == "ADMIN_UNAUTHORIZED"


def test_admin_routes_closed_without_configured_key(kv, session_factory):
    authorizer = RequestAuthorizer(
        rules=RouteRules.for_prefix("/api"),
        tokens=TokenService("x"),
        sessions=SessionStore(kv),
        subscriptions=SubscriptionGate(kv),
        session_factory=session_factory,
        admin_key="",
    )
    with pytest.raises(AuthenticationError):
        authorizer.authorize("/api/admin/clients", {"X-Admin-Key": ""})


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer", "Bearer a b"])
def test_missing_token(parts, header):
    authorizer, _, _ = parts
    headers = {} if header is None else {"Authorization": header}
    with pytest.raises(AuthenticationError) as exc:
        authorizer.authorize("/api/auth/me", headers)
    assert exc.value.code == "TOKEN_MISSING"


def test_valid_token_yields_identity(parts, make_tenant):
    authorizer, tokens, sessions = parts
    tenant = make_tenant(plan="enterprise")
    token = _signed_in(tokens, sessions, tenant.id)

    decision = authorizer.authorize("/api/auth/me", bearer(token))
    identity = decision.identity
    assert decision.route_class is RouteClass.TENANT
    assert (identity.tenant_id, identity.user_id) == (tenant.id, 0)
    assert identity.is_tenant_admin
    assert identity.plan == "enterprise"


def test_refresh_token_cannot_be_used_as_access(parts, make_tenant):
    authorizer, tokens, sessions = parts
    tenant = make_tenant()
    refresh = tokens.issue_refresh_token(tenant_id=tenant.id, user_id=0)
    sessions.create_session(refresh, tenant_id=tenant.id, user_id=0, email=None)
    with pytest.raises(AuthenticationError) as exc:
        authorizer.authorize("/api/auth/me", bearer(refresh))
    assert exc.value.code == "TOKEN_INVALID"


def test_revoked_session_is_rejected(parts, make_tenant):
    authorizer, tokens, sessions = parts
    tenant = make_tenant()
    token = _signed_in(tokens, sessions, tenant.id)
    sessions.revoke_session(token)
    with pytest.raises(AuthenticationError) as exc:
        authorizer.authorize("/api/auth/me", bearer(token))
    assert exc.value.code == "SESSION_EXPIRED"


def test_session_of_another_identity_is_rejected(parts, make_tenant):
    authorizer, tokens, sessions = parts
    tenant = make_tenant()
    token = tokens.issue_access_token(tenant_id=tenant.id, user_id=0, email=None, role="admin", is_tenant_admin=True)
    sessions.create_session(token, tenant_id=tenant.id + 1, user_id=0, email=None)
    with pytest.raises(AuthenticationError) as exc:
        authorizer.authorize("/api/auth/me", bearer(token))
    assert exc.value.code == "SESSION_EXPIRED"


def test_lapsed_subscription_blocks_and_is_persisted(parts, kv, make_tenant):
    authorizer, tokens, sessions = parts
    tenant = make_tenant(status="active")
    kv.put(subscription_key(tenant.id),
           {"status": "active", "plan": "pro", "expiresAt": to_iso(utcnow() - timedelta(days=1))})
    token = _signed_in(tokens, sessions, tenant.id)

    with pytest.raises(SubscriptionError) as exc:
        authorizer.authorize("/api/auth/me", bearer(token))
    assert exc.value.code == "SUBSCRIPTION_EXPIRED"
    assert kv.get(subscription_key(tenant.id))["status"] == "expired"


def test_token_for_deleted_tenant(parts):
    authorizer, tokens, sessions = parts
    token = _signed_in(tokens, sessions, 4242)
    with pytest.raises(AuthenticationError) as exc:
        authorizer.authorize("/api/auth/me", bearer(token))
    assert exc.value.code == "TOKEN_INVALID"


# ------------------------------------------------------------------ via HTTP
def test_preflight_is_answered_without_auth(client):
    response = client.options("/api/auth/me")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "Authorization" in response.headers["Access-Control-Allow-Headers"]


def test_gate_errors_use_the_envelope_and_cors(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"code": "TOKEN_MISSING", "message": "Missing bearer token"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_admin_route_over_http(client, admin_headers):
    assert client.get("/api/admin/clients").status_code == 401
    assert client.get("/api/admin/clients", headers=admin_headers).status_code == 200


def test_unknown_tenant_route_is_still_gated(client):
    assert client.get("/api/anything").status_code == 401
