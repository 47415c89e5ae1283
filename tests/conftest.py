import os
import tempfile

# antes de qualquer import de coursedesk (Settings e o app são criados no import)
_test_tmp_dir = tempfile.mkdtemp(prefix="coursedesk_test_")
os.environ.setdefault("DATA_DIR", _test_tmp_dir)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_test_tmp_dir, 'test.db')}")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("ADMIN_SECRET_KEY", "test-admin-key")
os.environ.setdefault("KV_URL", "memory://")
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import coursedesk.models  # noqa: E402,F401
from coursedesk.core.config import Settings  # noqa: E402
from coursedesk.core.kv import MemoryKVStore  # noqa: E402
from coursedesk.core.security_password import hash_password  # noqa: E402
from coursedesk.core.timeutil import utcnow  # noqa: E402
from coursedesk.db.base import Base  # noqa: E402
from coursedesk.db.session import build_session_factory  # noqa: E402
from coursedesk.main import create_app  # noqa: E402
from coursedesk.models.client import Client  # noqa: E402
from coursedesk.models.user import User  # noqa: E402

ADMIN_KEY = os.environ["ADMIN_SECRET_KEY"]
PASSWORD = "S3nha-forte!"
# o hash é caro (100k iterações); calculado uma vez para todos os testes
PASSWORD_HASH = hash_password(PASSWORD)


class FakeClock:
    """Relógio monotônico controlável para o MemoryKVStore."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv(clock):
    return MemoryKVStore(clock=clock)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings().model_copy(update={"ENABLE_METRICS": False, "RUN_MIGRATIONS_ON_STARTUP": False})


@pytest.fixture
def app(settings, kv, session_factory):
    return create_app(settings=settings, kv=kv, session_factory=session_factory)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def make_tenant(db):
    def _make(
        email="owner@acme.example.com",
        *,
        name="Acme Cursos",
        plan="pro",
        status="active",
        expires_in=timedelta(days=30),
        password_hash=PASSWORD_HASH,
    ):
        tenant = Client(
            email=email,
            password_hash=password_hash,
            name=name,
            contact_person="Ana Souza",
            plan=plan,
            subscription_status=status,
            subscription_expires_at=(utcnow() + expires_in) if expires_in is not None else None,
        )
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant
    return _make


@pytest.fixture
def make_user(db):
    def _make(tenant, email="staff@acme.example.com", *, role="user", is_active=True, password_hash=PASSWORD_HASH):
        user = User(
            client_id=tenant.id,
            email=email,
            password_hash=password_hash,
            name="Bruno Lima",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(client):
    def _login(email="owner@acme.example.com", password=PASSWORD):
        return client.post("/api/auth/login", json={"email": email, "password": password})
    return _login
