"""Aggregate queries over chats and messages.

All statements are built by plain methods so their SQL can be inspected
without a database; the async methods only execute and map rows.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.analytics import (
    ActorActivity,
    DailyActivity,
    RoleStats,
    UserActivity,
)
from app.domain.protocols.repositories import ActivityMetric
from app.infrastructure.database.models.chat import ChatModel
from app.infrastructure.database.models.message import MessageModel
from app.infrastructure.database.models.user import UserModel


def utc_day(column):
    """Truncate a timestamptz column to its UTC calendar day.

    Literals are inlined so the SELECT and GROUP BY expressions match.
    """
    return func.date_trunc(literal_column("'day'"), func.timezone(literal_column("'UTC'"), column))


class AnalyticsRepositoryImpl:
    """SQLAlchemy implementation of AnalyticsRepository (PostgreSQL)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # --- Statements ---

    def activity_statement(self, org_id: UUID, start: datetime, end: datetime) -> Select:
        day = utc_day(ChatModel.created_at).label("day")
        return (
            select(day, func.count(ChatModel.id).label("count"))
            .where(
                ChatModel.organization_id == org_id,
                ChatModel.created_at >= start,
                ChatModel.created_at <= end,
            )
            .group_by(day)
            .order_by(day.asc())
        )

    def chat_ids_statement(self, org_id: UUID, start: datetime, end: datetime) -> Select:
        return select(ChatModel.id).where(
            ChatModel.organization_id == org_id,
            ChatModel.created_at >= start,
            ChatModel.created_at <= end,
        )

    def role_stats_statement(
        self, chat_ids: Sequence[UUID], start: datetime, end: datetime
    ) -> Select:
        return (
            select(
                MessageModel.role,
                func.count(MessageModel.id).label("count"),
                func.coalesce(func.sum(MessageModel.tokens), 0).label("total_tokens"),
                func.avg(MessageModel.tokens).label("avg_tokens"),
                func.avg(MessageModel.latency).label("avg_latency"),
            )
            .where(
                MessageModel.chat_id.in_(list(chat_ids)),
                MessageModel.created_at >= start,
                MessageModel.created_at <= end,
            )
            .group_by(MessageModel.role)
            .order_by(MessageModel.role.asc())
        )

    def top_actors_statement(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
        limit: int,
        metric: ActivityMetric = "chats",
    ) -> Select:
        if metric == "messages":
            model, activity = MessageModel, MessageModel.created_at
        else:
            model, activity = ChatModel, ChatModel.updated_at

        count = func.count(model.id).label("count")
        last_activity = func.max(activity).label("last_activity")
        return (
            select(model.user_id, count, last_activity)
            .where(
                model.organization_id == org_id,
                model.created_at >= start,
                model.created_at <= end,
            )
            .group_by(model.user_id)
            .order_by(count.desc(), last_activity.desc().nulls_last(), model.user_id.asc())
            .limit(limit)
        )

    def user_activity_statement(self, org_id: UUID) -> Select:
        chat_counts = (
            select(ChatModel.user_id, func.count(ChatModel.id).label("chat_count"))
            .where(ChatModel.organization_id == org_id)
            .group_by(ChatModel.user_id)
            .subquery()
        )
        return (
            select(UserModel, func.coalesce(chat_counts.c.chat_count, 0).label("chat_count"))
            .outerjoin(chat_counts, chat_counts.c.user_id == UserModel.id)
            .where(UserModel.organization_id == org_id)
            .order_by(UserModel.username.asc())
        )

    # --- Queries ---

    async def chat_activity_by_day(
        self, org_id: UUID, start: datetime, end: datetime
    ) -> list[DailyActivity]:
        """Chats created per UTC day, ascending, non-empty days only."""
        result = await self.session.execute(self.activity_statement(org_id, start, end))
        return [DailyActivity(day=row.day.date(), count=int(row.count)) for row in result]

    async def chat_ids_in_window(
        self, org_id: UUID, start: datetime, end: datetime
    ) -> list[UUID]:
        """IDs of chats created in the window."""
        result = await self.session.execute(self.chat_ids_statement(org_id, start, end))
        return list(result.scalars().all())

    async def message_stats_by_role(
        self, chat_ids: Sequence[UUID], start: datetime, end: datetime
    ) -> list[RoleStats]:
        """Message aggregates per role; no query for an empty chat set."""
        if not chat_ids:
            return []
        result = await self.session.execute(self.role_stats_statement(chat_ids, start, end))
        return [
            RoleStats(
                role=row.role,
                count=int(row.count),
                total_tokens=int(row.total_tokens),
                avg_tokens=float(row.avg_tokens) if row.avg_tokens is not None else None,
                avg_latency=float(row.avg_latency) if row.avg_latency is not None else None,
            )
            for row in result
        ]

    async def top_actors(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
        limit: int,
        metric: ActivityMetric = "chats",
    ) -> list[ActorActivity]:
        """Most active users, count desc then most recent activity desc."""
        result = await self.session.execute(
            self.top_actors_statement(org_id, start, end, limit, metric)
        )
        return [
            ActorActivity(
                user_id=row.user_id,
                count=int(row.count),
                last_activity=row.last_activity,
            )
            for row in result
        ]

    async def user_activity(self, org_id: UUID) -> list[UserActivity]:
        """Per-user chat counts for every user of the organization."""
        result = await self.session.execute(self.user_activity_statement(org_id))
        rows = []
        for user, chat_count in result.all():
            rows.append(
                UserActivity(
                    user_id=user.id,
                    username=user.username,
                    email=user.email,
                    role=user.role,
                    is_active=user.is_active,
                    first_name=user.first_name or "",
                    last_name=user.last_name or "",
                    chat_count=int(chat_count),
                    created_at=user.created_at,
                    updated_at=user.updated_at,
                )
            )
        return rows
