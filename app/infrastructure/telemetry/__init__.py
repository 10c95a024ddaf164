"""Telemetry infrastructure (logging, tracing, metrics)."""

from app.infrastructure.telemetry.logging import (
    ContextLogger,
    clear_request_context,
    configure_logging,
    get_logger,
    org_id_var,
    request_id_var,
    set_request_context,
    user_id_var,
)
from app.infrastructure.telemetry.metrics import (
    record_access_decision,
    record_aggregation_query,
    record_http_request,
    record_org_context,
    set_service_info,
)
from app.infrastructure.telemetry.tracing import (
    configure_tracing,
    create_span,
    current_trace_id,
    instrument_fastapi,
    instrument_sqlalchemy,
    shutdown_tracing,
)

__all__ = [
    # Logging
    "ContextLogger",
    "configure_logging",
    "get_logger",
    "set_request_context",
    "clear_request_context",
    "request_id_var",
    "user_id_var",
    "org_id_var",
    # Tracing
    "configure_tracing",
    "create_span",
    "current_trace_id",
    "instrument_fastapi",
    "instrument_sqlalchemy",
    "shutdown_tracing",
    # Metrics
    "set_service_info",
    "record_http_request",
    "record_access_decision",
    "record_org_context",
    "record_aggregation_query",
]
