# coursedesk/crud/user.py
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursedesk.core.timeutil import utcnow
from coursedesk.models.user import User


class CRUDUser:
    """
    Usuários do tenant. Não herda CRUDBase: o login procura por e-mail em todos os
    tenants, o resto é sempre escopado por client_id.
    """

    def list_by_email(self, db: Session, email: str) -> List[User]:
        return list(db.scalars(select(User).where(User.email == email).order_by(User.id)).all())

    def get_in_tenant(self, db: Session, user_id: int, client_id: int) -> Optional[User]:
        return db.execute(
            select(User).where(User.id == user_id, User.client_id == client_id)
        ).scalar_one_or_none()

    def touch_last_login(self, db: Session, user: User, new_hash: Optional[str] = None) -> None:
        user.last_login_at = utcnow()
        if new_hash:
            user.password_hash = new_hash
        db.add(user); db.commit()


user_crud = CRUDUser()
