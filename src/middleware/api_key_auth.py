"""Shared-secret guard for the purge admin API.

Only paths under the API prefix are checked; health and docs stay open.
A purge API with no key configured is refused unless debug mode is on.
"""

from __future__ import annotations

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from src.config import settings

logger = logging.getLogger(__name__)


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, protected_prefix: str, header_name: str = "X-API-Key"):
        super().__init__(app)
        self.protected_prefix = protected_prefix.rstrip("/")
        self.header_name = header_name

    def _is_protected(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return False
        path = request.url.path
        return path == self.protected_prefix or path.startswith(self.protected_prefix + "/")

    def _reject(self, request: Request) -> JSONResponse | None:
        expected_key = settings.api_key
        if not expected_key:
            if settings.debug:
                return None
            logger.error("Refusing %s %s: TABLE_PURGE_API_KEY is not set", request.method, request.url.path)
            return JSONResponse(
                status_code=503,
                content={"detail": "Purge API disabled: TABLE_PURGE_API_KEY not configured"},
            )

        provided_key = request.headers.get(self.header_name, "")
        if provided_key and secrets.compare_digest(provided_key, expected_key):
            return None

        logger.warning("Rejected %s %s: bad or missing %s", request.method, request.url.path, self.header_name)
        return JSONResponse(
            status_code=401,
            content={"detail": f"Invalid or missing {self.header_name}"},
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._is_protected(request):
            rejection = self._reject(request)
            if rejection is not None:
                return rejection
        return await call_next(request)
