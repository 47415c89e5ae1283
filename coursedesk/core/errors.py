# coursedesk/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class ConfigurationError(RuntimeError):
    """Configuração inválida detectada na inicialização (ex.: SECRET_KEY ausente)."""


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal error."

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request."


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required."


class AccountDisabledError(AppError):
    status_code = 403
    code = "ACCOUNT_DISABLED"
    message = "Account disabled."


class SubscriptionError(AppError):
    status_code = 403
    code = "SUBSCRIPTION_EXPIRED"
    message = "Subscription expired or suspended. Contact support to renew it."


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Resource already exists."


class InternalError(AppError):
    pass
