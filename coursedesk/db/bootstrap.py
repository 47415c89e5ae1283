# coursedesk/db/bootstrap.py
import logging
import os
from alembic import command
from alembic.config import Config

from coursedesk.core.config import Settings
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.db.init_db import init_db
from coursedesk.db.session import normalize_database_url

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def run_migrations(database_url: str) -> None:
    # Aponta explicitamente para alembic.ini e migrations/
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    cfg.set_main_option("sqlalchemy.url", normalize_database_url(database_url))
    command.upgrade(cfg, "head")


def run_migrations_and_seed(settings: Settings, session_factory, gate: SubscriptionGate) -> None:
    run_migrations(settings.DATABASE_URL)
    if settings.SEED_DEMO_TENANT:
        with session_factory() as db:
            init_db(db, settings, gate)
