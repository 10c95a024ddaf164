"""Analytics service - time-windowed aggregates for one organization.

Every aggregate is bounded by the request's organization context and its
aggregation window, the same boundary the CRUD paths use.
"""

import time
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.aggregation import AggregationWindow, parse_window
from app.application.context import RequestContext
from app.application.pagination import clamp_limit
from app.application.policy import AccessPolicy, Operation, access_policy
from app.domain.errors import ValidationError
from app.domain.protocols.repositories import AnalyticsRepository, UserRepository
from app.infrastructure.repositories import AnalyticsRepositoryImpl, UserRepositoryImpl
from app.infrastructure.telemetry import create_span, get_logger, record_aggregation_query

logger = get_logger(__name__)

TOP_ACTORS_DEFAULT = 10
TOP_ACTORS_MAX = 50
METRICS = ("chats", "messages")


@dataclass
class AggregateResult:
    data: list[dict[str, Any]]
    metadata: dict[str, Any] = field(default_factory=dict)


def round_half_up(value: float | None, places: int = 2) -> float | None:
    """Round like a person would (2.345 -> 2.35), not like banker's rounding."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class AnalyticsService:
    """Activity-by-day, message stats by role and top actors."""

    def __init__(
        self,
        analytics: AnalyticsRepository,
        users: UserRepository,
        policy: AccessPolicy = access_policy,
        top_default: int = TOP_ACTORS_DEFAULT,
        top_max: int = TOP_ACTORS_MAX,
    ):
        self.analytics = analytics
        self.users = users
        self.policy = policy
        self.top_default = top_default
        self.top_max = top_max

    @classmethod
    def from_session(cls, db: AsyncSession, **kwargs: Any) -> "AnalyticsService":
        return cls(AnalyticsRepositoryImpl(db), UserRepositoryImpl(db), **kwargs)

    async def activity_by_day(self, ctx: RequestContext) -> AggregateResult:
        """Chats created per UTC day, ascending, without zero-filled gaps."""
        self.policy.authorize(ctx, Operation.ANALYTICS_READ)
        window = self._window(ctx)

        with create_span("analytics.activity_by_day", self._span_attributes(ctx, window)):
            started = time.perf_counter()
            rows = await self.analytics.chat_activity_by_day(
                ctx.organization_id, window.start, window.end
            )
            record_aggregation_query("activity", time.perf_counter() - started, len(rows))

        return AggregateResult(
            data=[{"date": row.day.isoformat(), "count": row.count} for row in rows],
            metadata={
                **self._window_metadata(window),
                "totalDays": window.total_days,
                "totalChats": sum(row.count for row in rows),
            },
        )

    async def message_stats_by_role(self, ctx: RequestContext) -> AggregateResult:
        """Message count, tokens and latency per message role.

        The chat set is fixed first; an empty set short-circuits with zero
        totals and no message query.
        """
        self.policy.authorize(ctx, Operation.ANALYTICS_READ)
        window = self._window(ctx)

        with create_span("analytics.message_stats_by_role", self._span_attributes(ctx, window)):
            started = time.perf_counter()
            chat_ids = await self.analytics.chat_ids_in_window(
                ctx.organization_id, window.start, window.end
            )
            stats = []
            if chat_ids:
                stats = await self.analytics.message_stats_by_role(
                    chat_ids, window.start, window.end
                )
            record_aggregation_query("role_stats", time.perf_counter() - started, len(stats))

        data = [
            {
                "role": row.role,
                "count": row.count,
                "avgTokens": round_half_up(row.avg_tokens),
                "totalTokens": row.total_tokens,
                "avgLatency": round_half_up(row.avg_latency),
            }
            for row in stats
        ]
        return AggregateResult(
            data=data,
            metadata={
                **self._window_metadata(window),
                "totalChats": len(chat_ids),
                "totalMessages": sum(row.count for row in stats),
                "totalTokens": sum(row.total_tokens for row in stats),
            },
        )

    async def top_actors(
        self,
        ctx: RequestContext,
        limit: Any = None,
        metric: str = "chats",
    ) -> AggregateResult:
        """Most active users by chat or message count.

        Ties are broken by most recent activity. Profile fields are joined
        for the returned users only.
        """
        self.policy.authorize(ctx, Operation.ANALYTICS_READ)
        if metric not in METRICS:
            raise ValidationError(
                message=f"metric must be one of {', '.join(METRICS)}",
                details={"metric": metric},
            )
        top_n = clamp_limit(limit, self.top_default, self.top_max)
        window = self._window(ctx)

        attributes = {**self._span_attributes(ctx, window), "limit": top_n, "metric": metric}
        with create_span("analytics.top_actors", attributes):
            started = time.perf_counter()
            actors = await self.analytics.top_actors(
                ctx.organization_id, window.start, window.end, top_n, metric
            )
            users = await self.users.get_many([actor.user_id for actor in actors])
            record_aggregation_query("top_actors", time.perf_counter() - started, len(actors))

        by_id = {user.id: user for user in users}
        data = []
        for actor in actors:
            user = by_id.get(actor.user_id)
            data.append(
                {
                    "userId": str(actor.user_id),
                    "username": user.username if user else None,
                    "email": user.email if user else None,
                    "count": actor.count,
                    "lastActivity": (
                        actor.last_activity.isoformat() if actor.last_activity else None
                    ),
                }
            )

        return AggregateResult(
            data=data,
            metadata={**self._window_metadata(window), "limit": top_n, "metric": metric},
        )

    @staticmethod
    def _window(ctx: RequestContext) -> AggregationWindow:
        return ctx.window or parse_window(None, None)

    @staticmethod
    def _window_metadata(window: AggregationWindow) -> dict[str, Any]:
        return {"startDate": window.start.isoformat(), "endDate": window.end.isoformat()}

    @staticmethod
    def _span_attributes(ctx: RequestContext, window: AggregationWindow) -> dict[str, Any]:
        return {
            "organization_id": str(ctx.organization_id),
            "window.start": window.start.isoformat(),
            "window.end": window.end.isoformat(),
        }
