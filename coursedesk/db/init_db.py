# coursedesk/db/init_db.py
import logging

from sqlalchemy.orm import Session

from coursedesk.core.config import Settings
from coursedesk.core.subscription import SubscriptionGate
from coursedesk.crud.client import client_crud
from coursedesk.schemas.client import ClientCreate

logger = logging.getLogger(__name__)


def init_db(db: Session, settings: Settings, gate: SubscriptionGate) -> None:
    """Tenant demo para desenvolvimento local (só com SEED_DEMO_TENANT e senha configurada)."""
    if not settings.DEMO_ADMIN_PASSWORD:
        logger.warning("SEED_DEMO_TENANT set but DEMO_ADMIN_PASSWORD is empty; skipping seed")
        return
    email = settings.DEMO_ADMIN_EMAIL.strip().lower()
    if client_crud.get_by_email(db, email):
        return
    client = client_crud.create(db, ClientCreate(
        email=email,
        password=settings.DEMO_ADMIN_PASSWORD,
        name="Cliente Demo",
        plan="trial",
    ))
    gate.seed(client)
    logger.info("Seeded demo tenant %s", client.id)
