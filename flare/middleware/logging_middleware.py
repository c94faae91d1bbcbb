"""
HTTP request logging middleware.

One structured line per request: the route template (not every item id),
the caller's identity if any, status and duration. FlareError failures also
carry the error category the exception handler reported.
"""

import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

ERROR_CATEGORY_HEADER = "x-error-category"


def route_label(request: Request) -> str:
    """Matched route template, or the raw path when nothing matched."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request against its route with the caller and outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        user_id = request.headers.get("x-user-id") or None

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, user_id=user_id)

        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            status = response.status_code if response is not None else 500
            fields = {
                "method": request.method,
                "route": route_label(request),
                "status": status,
                "authenticated": user_id is not None,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            }
            if response is not None and ERROR_CATEGORY_HEADER in response.headers:
                fields["error_category"] = response.headers[ERROR_CATEGORY_HEADER]

            if status >= 500:
                logger.error("http_request", **fields)
            elif status >= 400:
                logger.warning("http_request", **fields)
            else:
                logger.info("http_request", **fields)
