"""OpenTelemetry tracing configuration.

Tracing is opt-in (OTEL_ENABLED). When it is off, `create_span` runs on the
API's no-op tracer, so services call it unconditionally.
"""

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from app.infrastructure.telemetry.logging import get_logger

logger = get_logger(__name__)

_tracer_provider: TracerProvider | None = None


def configure_tracing(
    service_name: str = "chatlogger-api",
    service_version: str = "1.0.0",
    environment: str = "development",
    otlp_endpoint: str | None = None,
) -> TracerProvider:
    """Install a tracer provider, exporting over OTLP/gRPC when an endpoint is set.

    Args:
        service_name: Name of the service
        service_version: Version of the service
        environment: Deployment environment
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
    """
    global _tracer_provider

    resource = Resource.create({
        "service.name": service_name,
        "service.version": service_version,
        "deployment.environment": environment,
    })
    provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        logger.info("OTLP tracing enabled", extra={"endpoint": otlp_endpoint})

    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    logger.info(
        "OpenTelemetry tracing configured",
        extra={"service": service_name, "environment": environment},
    )
    return provider


def instrument_fastapi(app: Any) -> None:
    FastAPIInstrumentor.instrument_app(app)
    logger.debug("FastAPI instrumented for tracing")


def instrument_sqlalchemy(engine: Any) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine)
    logger.debug("SQLAlchemy instrumented for tracing")


@contextmanager
def create_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Run a block inside an internal span.

    None-valued attributes are dropped; exceptions mark the span as failed
    and propagate.
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def current_trace_id() -> str | None:
    """Hex trace id of the active span, if any."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider."""
    global _tracer_provider
    if _tracer_provider:
        _tracer_provider.shutdown()
        _tracer_provider = None
        logger.info("OpenTelemetry tracing shutdown")
