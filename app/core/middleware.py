"""Custom middleware components for the application."""
from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Awaitable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging_config import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id, time the request and log a compact access line."""

    def __init__(self, app: ASGIApp, *, skip_prefixes: tuple[str, ...] = ("/health",)) -> None:
        super().__init__(app)
        self._skip_prefixes = skip_prefixes

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        path = request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers.setdefault("X-Request-ID", request_id)

            if not path.startswith(self._skip_prefixes):
                duration_ms = (time.perf_counter() - start_time) * 1000
                client = request.client.host if request.client else "unknown"
                logger.info(
                    "%s %s -> %s in %.1fms (client=%s)",
                    request.method,
                    path,
                    response.status_code,
                    duration_ms,
                    client,
                )
            return response
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error for %s %s", request.method, path)
            raise
        finally:
            request_id_var.reset(token)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Baseline security headers for a JSON API; HSTS only behind HTTPS."""

    def __init__(self, app: ASGIApp, *, hsts: bool = False) -> None:
        super().__init__(app)
        self._hsts = hsts

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._hsts:
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )
        return response


__all__ = ["RequestContextMiddleware", "SecurityHeadersMiddleware"]
