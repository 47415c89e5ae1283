# coursedesk/core/middleware.py
import logging
from typing import Dict

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from coursedesk.api.errors import error_response
from coursedesk.core.authorizer import ADMIN_KEY_HEADER, RequestAuthorizer
from coursedesk.core.errors import AppError, InternalError

logger = logging.getLogger(__name__)


def cors_headers(allow_origin: str = "*") -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": f"Content-Type, Authorization, {ADMIN_KEY_HEADER}",
        "Access-Control-Max-Age": "86400",
    }


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Preflight CORS, classificação da rota e autorização antes de qualquer handler."""

    def __init__(self, app, authorizer: RequestAuthorizer, headers: Dict[str, str]):
        super().__init__(app)
        self.authorizer = authorizer
        self.headers = headers

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        try:
            # KV e banco são síncronos: fora do event loop
            decision = await run_in_threadpool(self.authorizer.authorize, request.url.path, request.headers)
        except AppError as exc:
            response = error_response(exc)
        except Exception:
            logger.exception("Authorization failed unexpectedly on %s", request.url.path)
            response = error_response(InternalError())
        else:
            if decision.identity is not None:
                request.state.identity = decision.identity
            try:
                response = await call_next(request)
            except Exception:
                # o 500 também leva os headers CORS
                logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                response = error_response(InternalError())

        for name, value in self.headers.items():
            response.headers[name] = value
        return response
