import pytest
from fastapi.testclient import TestClient

from coursedesk.core.errors import ConfigurationError
from coursedesk.main import create_app


def test_missing_secret_fails_at_startup(settings, kv, session_factory):
    broken = settings.model_copy(update={"SECRET_KEY": ""})
    with pytest.raises(ConfigurationError):
        create_app(settings=broken, kv=kv, session_factory=session_factory)


def test_custom_api_prefix(settings, kv, session_factory):
    app = create_app(settings=settings.model_copy(update={"API_PREFIX": "/v2"}), kv=kv,
                     session_factory=session_factory)
    client = TestClient(app)
    assert client.get("/v2/health").status_code == 200
    assert client.get("/v2/auth/me").status_code == 401


def test_unexpected_errors_do_not_leak(app, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(app.state.auth_service, "login", boom)
    client = TestClient(app, raise_server_exceptions=False)
    response = client.post("/api/auth/login", json={"email": "a@b.example.com", "password": "x"})
    assert response.status_code == 500
    assert response.json() == {"code": "INTERNAL_ERROR", "message": "Internal error."}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_handler_crash_is_answered_by_the_gate(client, app, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("kv exploded")

    monkeypatch.setattr(app.state.auth_service, "refresh", boom)
    response = client.post("/api/auth/refresh", json={"refreshToken": "whatever"})
    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert "Authorization" in response.headers["Access-Control-Allow-Headers"]
