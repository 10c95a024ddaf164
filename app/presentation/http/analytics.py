"""Analytics API endpoints."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query

from app.application.context import RequestContext
from app.application.services.analytics_service import AggregateResult, AnalyticsService
from app.presentation.http.deps import get_analytics_context, get_analytics_service
from app.presentation.http.schemas import envelope

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _aggregate_response(message: str, result: AggregateResult) -> dict[str, Any]:
    return envelope(message, result.data, metadata=result.metadata)


@router.get("/activity")
async def chat_activity(
    ctx: RequestContext = Depends(get_analytics_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    """Chats created per day in the window (admin)."""
    result = await service.activity_by_day(ctx)
    return _aggregate_response("Chat activity retrieved successfully", result)


@router.get("/messages/stats")
async def message_stats(
    ctx: RequestContext = Depends(get_analytics_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    """Message statistics per role in the window (admin)."""
    result = await service.message_stats_by_role(ctx)
    return _aggregate_response("Message statistics retrieved successfully", result)


@router.get("/users/top")
async def top_users(
    limit: str | None = Query(None),
    metric: Literal["chats", "messages"] = Query("chats"),
    ctx: RequestContext = Depends(get_analytics_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    """Most active users in the window (admin)."""
    result = await service.top_actors(ctx, limit=limit, metric=metric)
    return _aggregate_response("Top users retrieved successfully", result)
