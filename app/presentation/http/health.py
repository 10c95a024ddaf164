"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.infrastructure.database import get_db, ping

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    timestamp: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Service status without touching dependencies. Use /ready for those."""
    return HealthResponse(
        status="ok",
        service=settings.otel_service_name,
        timestamp=datetime.now(UTC).isoformat(),
        version=settings.version,
        environment=settings.environment,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> Any:
    """Readiness probe: 503 until the database answers."""
    checks = {"database": await ping(db)}

    body = ReadinessResponse(ready=all(checks.values()), checks=checks)
    if not body.ready:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness probe: the process is serving requests."""
    return {"status": "alive"}
