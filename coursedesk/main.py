# coursedesk/main.py
import logging
from datetime import timedelta
from typing import Callable, Optional

from fastapi import FastAPI
from sqlalchemy.orm import Session

from coursedesk.api.errors import install_exception_handlers
from coursedesk.api.v1.router import api_router
from coursedesk.core.authorizer import RequestAuthorizer, RouteRules
from coursedesk.core.config import Settings, settings as default_settings
from coursedesk.core.kv import KVStore, kv_from_url
from coursedesk.core.logging import setup_logging
from coursedesk.core.middleware import AuthGateMiddleware, cors_headers
from coursedesk.core.sessions import SessionStore
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.core.tokens import TokenService
from coursedesk.db.bootstrap import run_migrations_and_seed
from coursedesk.services.auth import AuthService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    kv: Optional[KVStore] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    # falha aqui (e não na primeira requisição) se SECRET_KEY estiver ausente
    tokens = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        access_ttl=timedelta(seconds=settings.access_token_ttl_seconds),
        refresh_ttl=timedelta(seconds=settings.refresh_token_ttl_seconds),
    )
    if kv is None:
        kv = kv_from_url(settings.KV_URL)
    if session_factory is None:
        from coursedesk.db.session import SessionLocal
        session_factory = SessionLocal

    sessions = SessionStore(
        kv,
        session_ttl=settings.access_token_ttl_seconds,
        refresh_ttl=settings.refresh_token_ttl_seconds,
    )
    subscriptions = SubscriptionGate(
        kv,
        cache_ttl=timedelta(days=settings.SUBSCRIPTION_CACHE_TTL_DAYS),
        admin_ttl=timedelta(days=settings.ADMIN_SUBSCRIPTION_TTL_DAYS),
    )
    authorizer = RequestAuthorizer(
        rules=RouteRules.for_prefix(settings.API_PREFIX),
        tokens=tokens,
        sessions=sessions,
        subscriptions=subscriptions,
        session_factory=session_factory,
        admin_key=settings.ADMIN_SECRET_KEY,
    )

    api = FastAPI(
        title="CourseDesk - Backend",
        version=Settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={"displayRequestDuration": True, "persistAuthorization": True},
    )
    api.state.kv = kv
    api.state.tokens = tokens
    api.state.sessions = sessions
    api.state.subscriptions = subscriptions
    api.state.session_factory = session_factory
    api.state.authorizer = authorizer
    api.state.auth_service = AuthService(tokens=tokens, sessions=sessions, subscriptions=subscriptions)

    install_exception_handlers(api)
    api.add_middleware(AuthGateMiddleware, authorizer=authorizer, headers=cors_headers(settings.CORS_ALLOW_ORIGIN))
    api.include_router(api_router, prefix="/" + settings.API_PREFIX.strip("/"))

    if settings.ENABLE_METRICS:
        # métricas /metrics (Prometheus)
        from prometheus_fastapi_instrumentator import Instrumentator
        Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

    @api.on_event("startup")
    def startup():
        if settings.RUN_MIGRATIONS_ON_STARTUP:
            run_migrations_and_seed(settings, session_factory, subscriptions)
        logger.info("CourseDesk API ready (prefix=%s, kv=%s)", settings.API_PREFIX, type(kv).__name__)

    return api


api = create_app()
