# coursedesk/models/__init__.py
# Carrega os módulos para registrar as tabelas no metadata:
from coursedesk.models.client import Client, PLANS, SUBSCRIPTION_STATUSES  # noqa: F401
from coursedesk.models.user import User  # noqa: F401
from coursedesk.models.audit import AuditLog  # noqa: F401

__all__ = ["Client", "User", "AuditLog", "PLANS", "SUBSCRIPTION_STATUSES"]
