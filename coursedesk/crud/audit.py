# coursedesk/crud/audit.py
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from coursedesk.models.audit import AuditLog


def record_audit(
    db: Session,
    *,
    client_id: int,
    entity: str,
    entity_id: Optional[int],
    action: str,
    details: Optional[Dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> AuditLog:
    row = AuditLog(client_id=client_id, user_id=user_id, entity=entity, entity_id=entity_id,
                   action=action, diff_json=details)
    db.add(row); db.commit()
    return row
