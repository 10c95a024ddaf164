"""Request context middleware for correlation IDs and request metrics."""

import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.infrastructure.telemetry.logging import clear_request_context, set_request_context
from app.infrastructure.telemetry.metrics import record_http_request


def _endpoint_label(request: Request) -> str:
    # Route templates keep label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that sets up request context for logging and tracing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Generate or extract request ID
        request_id = request.headers.get("X-Request-ID") or str(uuid4())

        # Set context for logging
        set_request_context(request_id=request_id)

        # Add request ID to request state for later use
        request.state.request_id = request_id

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # Add request ID to response headers
            response.headers["X-Request-ID"] = request_id

            return response
        finally:
            record_http_request(
                method=request.method,
                endpoint=_endpoint_label(request),
                status_code=status_code,
                duration_seconds=time.perf_counter() - started,
            )
            # Clear context after request
            clear_request_context()
