"""Repository protocols - abstract interfaces for data access."""

from collections.abc import Sequence
from datetime import datetime
from typing import Literal, Protocol
from uuid import UUID

from app.domain.entities import Chat, Message, Organization, User
from app.domain.entities.analytics import (
    ActorActivity,
    DailyActivity,
    RoleStats,
    UserActivity,
)
from app.domain.roles import Role
from app.domain.scope import QueryScope

ActivityMetric = Literal["chats", "messages"]


class OrganizationRepository(Protocol):
    """Abstract interface for organization data access."""

    async def get_by_id(self, org_id: UUID) -> Organization | None:
        """Get organization by ID, active or not."""
        ...

    async def get_by_name(self, name: str) -> Organization | None:
        """Get organization by its unique name."""
        ...

    async def get_active_by_api_key_hash(self, api_key_hash: str) -> Organization | None:
        """Get an active organization by API key digest."""
        ...

    async def list_page(self, skip: int, limit: int) -> tuple[list[Organization], int]:
        """List organizations by name, returning the page and the total count."""
        ...

    async def create(self, org: Organization) -> Organization:
        """Create a new organization."""
        ...

    async def update(self, org: Organization) -> Organization:
        """Update an existing organization."""
        ...

    async def delete(self, org_id: UUID) -> bool:
        """Delete an organization."""
        ...


class UserRepository(Protocol):
    """Abstract interface for user data access."""

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_in_organization(self, user_id: UUID, org_id: UUID) -> User | None:
        """Get user by ID only if it belongs to the organization."""
        ...

    async def get_by_api_key_hash(self, api_key_hash: str) -> User | None:
        """Get user by API key digest."""
        ...

    async def find_by_username_or_email(self, username: str, email: str) -> User | None:
        """Find any user holding the username or the email."""
        ...

    async def get_many(self, user_ids: Sequence[UUID]) -> list[User]:
        """Get users by IDs (missing IDs are skipped)."""
        ...

    async def search(
        self,
        org_id: UUID | None,
        *,
        username: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
        sort_by: str = "username",
        descending: bool = False,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """Filter users, returning the page and the total count."""
        ...

    async def count_in_organization(self, org_id: UUID, active_only: bool = False) -> int:
        """Count users of an organization."""
        ...

    async def create(self, user: User) -> User:
        """Create a new user."""
        ...

    async def update(self, user: User) -> User:
        """Update an existing user."""
        ...


class ChatRepository(Protocol):
    """Abstract interface for chat data access."""

    async def get_scoped(self, chat_id: UUID, scope: QueryScope) -> Chat | None:
        """Get a chat visible within the scope."""
        ...

    async def list_scoped(
        self,
        scope: QueryScope,
        *,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Chat], int]:
        """List chats in the scope, newest first."""
        ...

    async def search_scoped(
        self,
        scope: QueryScope,
        text: str,
        *,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Chat], int]:
        """Search chats by title or tag within the scope."""
        ...

    async def list_for_export(
        self,
        org_id: UUID,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: UUID | None = None,
    ) -> list[Chat]:
        """List chats of an organization chronologically."""
        ...

    async def create(self, chat: Chat) -> Chat:
        """Create a new chat."""
        ...

    async def update(self, chat: Chat) -> Chat:
        """Update an existing chat."""
        ...

    async def delete_with_messages(self, chat_id: UUID) -> bool:
        """Delete a chat and all of its messages."""
        ...


class MessageRepository(Protocol):
    """Abstract interface for message data access."""

    async def get_in_chat(self, message_id: UUID, chat_id: UUID) -> Message | None:
        """Get a message belonging to the chat."""
        ...

    async def list_in_chat(
        self, chat_id: UUID, *, skip: int = 0, limit: int = 10
    ) -> tuple[list[Message], int]:
        """List messages of a chat chronologically."""
        ...

    async def list_for_chats(self, chat_ids: Sequence[UUID]) -> list[Message]:
        """List all messages of the chats chronologically."""
        ...

    async def create(self, message: Message) -> Message:
        """Create a new message."""
        ...

    async def create_many(self, messages: Sequence[Message]) -> list[Message]:
        """Create messages in one flush."""
        ...

    async def update(self, message: Message) -> Message:
        """Update an existing message."""
        ...

    async def delete_in_chat(self, message_id: UUID, chat_id: UUID) -> bool:
        """Delete a message belonging to the chat."""
        ...


class AnalyticsRepository(Protocol):
    """Abstract interface for aggregate queries."""

    async def chat_activity_by_day(
        self, org_id: UUID, start: datetime, end: datetime
    ) -> list[DailyActivity]:
        """Chats created per UTC day, ascending, non-empty days only."""
        ...

    async def chat_ids_in_window(
        self, org_id: UUID, start: datetime, end: datetime
    ) -> list[UUID]:
        """IDs of chats created in the window."""
        ...

    async def message_stats_by_role(
        self, chat_ids: Sequence[UUID], start: datetime, end: datetime
    ) -> list[RoleStats]:
        """Message count/token/latency aggregates per role for the chats."""
        ...

    async def top_actors(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
        limit: int,
        metric: ActivityMetric = "chats",
    ) -> list[ActorActivity]:
        """Most active users, count desc then most recent activity desc."""
        ...

    async def user_activity(self, org_id: UUID) -> list[UserActivity]:
        """Per-user chat counts for every user of the organization."""
        ...
