from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from coursedesk.core.security_password import hash_password
from coursedesk.core.timeutil import utcnow
from coursedesk.crud.base import CRUDBase
from coursedesk.models.client import Client
from coursedesk.schemas.client import ClientCreate, ClientUpdate


class CRUDClient(CRUDBase[Client, ClientCreate, ClientUpdate]):
    def create(self, db: Session, obj_in: ClientCreate, extra: Optional[Dict[str, Any]] = None, exclude=None) -> Client:
        fields = {
            "email": obj_in.email.strip().lower(),
            "password_hash": hash_password(obj_in.password),
            "subscription_status": obj_in.subscription_status
            or ("trial" if obj_in.plan == "trial" else "active"),
        }
        if extra: fields.update(extra)
        return super().create(db, obj_in, extra=fields, exclude={"password"})

    def get_by_email(self, db: Session, email: str) -> Optional[Client]:
        return db.execute(select(Client).where(Client.email == email)).scalar_one_or_none()

    def search(
        self,
        db: Session,
        *,
        search: str = "",
        status: str = "",
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Client], int]:
        stmt = select(Client)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(Client.name.ilike(like), Client.email.ilike(like)))
        if status:
            stmt = stmt.where(Client.subscription_status == status)
        total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = db.scalars(stmt.order_by(Client.created_at.desc(), Client.id.desc()).offset(skip).limit(limit)).all()
        return list(rows), int(total)

    def set_subscription(self, db: Session, client: Client, changes: ClientUpdate) -> Client:
        # campos não enviados (ex.: expiresAt) mantêm o valor da linha
        return self.update(db, client, changes)

    def touch_last_login(self, db: Session, client: Client, new_hash: Optional[str] = None) -> None:
        data: Dict[str, Any] = {"last_login_at": utcnow()}
        if new_hash:
            data["password_hash"] = new_hash
        self.update(db, client, data)


client_crud = CRUDClient(Client)
