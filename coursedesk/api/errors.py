# coursedesk/api/errors.py
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from coursedesk.core.errors import AppError, InternalError, ValidationError

logger = logging.getLogger(__name__)


def error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _describe(errors) -> str:
    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors]
    fields = [f for f in fields if f]
    return f"Invalid or missing fields: {', '.join(fields)}" if fields else "Invalid request body."


def install_exception_handlers(api: FastAPI) -> None:
    @api.exception_handler(AppError)
    def handle_app_error(request: Request, exc: AppError):
        return error_response(exc)

    @api.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(ValidationError(_describe(exc.errors())))

    @api.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception):
        # detalhes só no log; o cliente recebe mensagem genérica
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(InternalError())
