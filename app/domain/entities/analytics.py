"""Aggregate rows produced by the analytics queries."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class DailyActivity:
    """Number of chats created on one UTC calendar day."""

    day: date
    count: int


@dataclass(frozen=True)
class RoleStats:
    """Message totals for one message role.

    Averages are raw store values; rounding happens in the service.
    """

    role: str
    count: int
    total_tokens: int
    avg_tokens: float | None
    avg_latency: float | None


@dataclass(frozen=True)
class ActorActivity:
    """Activity count for one user, with profile fields joined afterwards."""

    user_id: UUID
    count: int
    last_activity: datetime | None
    username: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class UserActivity:
    """Per-user export row."""

    user_id: UUID
    username: str
    email: str
    role: str
    is_active: bool
    first_name: str
    last_name: str
    chat_count: int
    created_at: datetime
    updated_at: datetime
