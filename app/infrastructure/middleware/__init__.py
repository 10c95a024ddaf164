"""Middleware infrastructure."""

from app.infrastructure.middleware.error_handler import error_handler_middleware
from app.infrastructure.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware", "error_handler_middleware"]
