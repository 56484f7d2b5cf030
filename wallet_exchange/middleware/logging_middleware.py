"""
Access logging for the exchange API.

One ``http_request`` event per request, tagged with a request id that is
echoed back in ``x-request-id``.
"""

import re
import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")
_TRUTHY = {"1", "true", "yes", "on"}


def resolve_request_id(header_value: Optional[str]) -> str:
    """Reuse a caller-supplied id only when it is short and log-safe."""
    if header_value and _REQUEST_ID.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex[:12]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log exchange traffic with timing, status and the diagnostic flag."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get("x-request-id"))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            # Only the path is logged: the query string and headers can carry a bearer token
            fields = {
                "method": request.method,
                "path": request.url.path,
                "diagnostic": request.query_params.get("debug", "").strip().lower() in _TRUTHY,
                "status": status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            }
            if status_code >= 500:
                logger.error("http_request", **fields)
            elif status_code in (401, 403):
                logger.warning("http_request", auth_rejected=True, **fields)
            elif status_code >= 400:
                logger.warning("http_request", **fields)
            else:
                logger.info("http_request", **fields)
