"""HTTP presentation layer - REST API routes."""

from fastapi import APIRouter

from app.presentation.http.analytics import router as analytics_router
from app.presentation.http.chats import router as chats_router
from app.presentation.http.exports import router as exports_router
from app.presentation.http.health import router as health_router
from app.presentation.http.messages import router as messages_router
from app.presentation.http.metrics import router as metrics_router
from app.presentation.http.organizations import router as organizations_router
from app.presentation.http.users import router as users_router

# Versioned API routes
v1_router = APIRouter()
v1_router.include_router(users_router, tags=["Users"])
v1_router.include_router(organizations_router, tags=["Organizations"])
v1_router.include_router(chats_router, tags=["Chats"])
v1_router.include_router(messages_router, tags=["Messages"])
v1_router.include_router(analytics_router, tags=["Analytics"])
v1_router.include_router(exports_router, tags=["Exports"])


def build_api_router(api_prefix: str, metrics: bool = True) -> APIRouter:
    """Operational routes at the root, business routes under the API prefix."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["Health"])
    if metrics:
        api_router.include_router(metrics_router, tags=["Metrics"])
    api_router.include_router(v1_router, prefix=api_prefix)
    return api_router


__all__ = ["build_api_router", "v1_router"]
