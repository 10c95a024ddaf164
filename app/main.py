"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.middleware import (
    RequestContextMiddleware,
    error_handler_middleware,
)
from app.infrastructure.telemetry import configure_logging, get_logger
from app.infrastructure.telemetry.metrics import set_service_info
from app.infrastructure.telemetry.tracing import (
    configure_tracing,
    instrument_fastapi,
    instrument_sqlalchemy,
    shutdown_tracing,
)
from app.presentation.http import build_api_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings

    logger.info(
        "Starting chatlogger API",
        extra={
            "version": settings.version,
            "environment": settings.environment,
        },
    )

    engine = await init_db(settings)
    if settings.otel_enabled:
        instrument_sqlalchemy(engine.sync_engine)
    logger.info("Database connection initialized")

    yield

    logger.info("Shutting down chatlogger API")
    await close_db()
    if settings.otel_enabled:
        shutdown_tracing()
    logger.info("Database connection closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    configure_logging(
        level=settings.log_level,
        format_type=settings.log_format,
        service_name=settings.otel_service_name,
    )

    if settings.otel_enabled:
        configure_tracing(
            service_name=settings.otel_service_name,
            service_version=settings.version,
            environment=settings.environment,
            otlp_endpoint=settings.otlp_endpoint or None,
        )

    set_service_info(
        version=settings.version,
        environment=settings.environment,
    )

    app = FastAPI(
        title="Chatlogger API",
        description="Multi-tenant chat logging and analytics",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )
    app.state.settings = settings

    if settings.otel_enabled:
        instrument_fastapi(app)

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if not settings.is_production else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    error_handler_middleware(app)

    app.include_router(
        build_api_router(settings.api_prefix, metrics=settings.prometheus_enabled)
    )

    return app


# Default app instance for uvicorn
app = create_app()
