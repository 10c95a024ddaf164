"""Chat service - conversation records within the caller's scope."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.context import RequestContext
from app.application.policy import AccessPolicy, Operation, access_policy
from app.domain.entities import Chat
from app.domain.errors import ChatNotFoundError, ValidationError
from app.domain.protocols.repositories import ChatRepository
from app.infrastructure.repositories import ChatRepositoryImpl
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)


class ChatService:
    """Service for managing chats.

    Every lookup runs under the caller's query scope, so chats outside it
    are reported as not found.
    """

    def __init__(self, chats: ChatRepository, policy: AccessPolicy = access_policy):
        self.chats = chats
        self.policy = policy

    @classmethod
    def from_session(cls, db: AsyncSession) -> "ChatService":
        return cls(ChatRepositoryImpl(db))

    async def create(
        self,
        ctx: RequestContext,
        title: str,
        *,
        source: str = "web",
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Chat:
        """Create a chat owned by the caller in the context organization."""
        self.policy.authorize(ctx, Operation.CHAT_CREATE)
        try:
            chat = Chat(
                id=uuid4(),
                user_id=ctx.identity.id,
                organization_id=ctx.organization_id,
                title=title,
                source=source,
                tags=tags or [],
                metadata=metadata or {},
            )
        except ValueError as e:
            raise ValidationError(message=str(e)) from e

        created = await self.chats.create(chat)
        logger.info(
            "Chat created",
            extra={"chat_id": str(created.id), "organization_id": str(ctx.organization_id)},
        )
        return created

    async def list_chats(
        self, ctx: RequestContext, *, is_active: bool | None = None
    ) -> tuple[list[Chat], int]:
        """List chats in scope, newest first."""
        self.policy.authorize(ctx, Operation.CHAT_LIST)
        return await self.chats.list_scoped(
            ctx.scope,
            is_active=is_active,
            skip=ctx.pagination.skip,
            limit=ctx.pagination.limit,
        )

    async def search(self, ctx: RequestContext, text: str) -> tuple[list[Chat], int]:
        """Search chats in scope by title or tag."""
        self.policy.authorize(ctx, Operation.CHAT_SEARCH)
        if not text or not text.strip():
            raise ValidationError(message="Search query is required")
        return await self.chats.search_scoped(
            ctx.scope,
            text,
            skip=ctx.pagination.skip,
            limit=ctx.pagination.limit,
        )

    async def get(self, ctx: RequestContext, chat_id: UUID) -> Chat:
        self.policy.authorize(ctx, Operation.CHAT_READ)
        return await self.load(ctx, chat_id)

    async def update(
        self,
        ctx: RequestContext,
        chat_id: UUID,
        *,
        title: str | None = None,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        is_active: bool | None = None,
    ) -> Chat:
        """Partially update a chat; metadata is merged."""
        self.policy.authorize(ctx, Operation.CHAT_UPDATE)
        chat = await self.load(ctx, chat_id)

        if title is not None:
            if not title.strip():
                raise ValidationError(message="Chat title is required")
            chat.title = title.strip()
        if tags is not None:
            chat.tags = tags
        if metadata is not None:
            chat.metadata = {**chat.metadata, **metadata}
        if is_active is not None:
            chat.is_active = is_active
        chat.updated_at = datetime.now(UTC)

        return await self.chats.update(chat)

    async def delete(self, ctx: RequestContext, chat_id: UUID) -> None:
        """Delete a chat together with its messages."""
        self.policy.authorize(ctx, Operation.CHAT_DELETE)
        chat = await self.load(ctx, chat_id)
        await self.chats.delete_with_messages(chat.id)
        logger.info("Chat deleted", extra={"chat_id": str(chat_id)})

    async def load(self, ctx: RequestContext, chat_id: UUID) -> Chat:
        """Load a chat under the caller's scope.

        Raises:
            ChatNotFoundError: If the chat is missing or out of scope
        """
        chat = await self.chats.get_scoped(chat_id, ctx.scope)
        if chat is None:
            raise ChatNotFoundError(details={"chat_id": str(chat_id)})
        return chat
