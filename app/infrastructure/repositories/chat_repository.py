"""Chat repository implementation."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.chat import Chat
from app.domain.scope import QueryScope
from app.infrastructure.database.models.chat import ChatModel
from app.infrastructure.database.models.message import MessageModel
from app.infrastructure.repositories.base import OrgScopedRepository, contains_pattern

TAG_SEPARATOR = "\x1f"


class ChatRepositoryImpl(OrgScopedRepository[ChatModel, Chat]):
    """SQLAlchemy implementation of ChatRepository."""

    model_class = ChatModel

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def list_scoped(
        self,
        scope: QueryScope,
        *,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Chat], int]:
        """List chats in the scope, newest first."""
        stmt = self.scoped(select(ChatModel), scope)
        if is_active is not None:
            stmt = stmt.where(ChatModel.is_active.is_(is_active))
        return await self._fetch_page(
            stmt,
            ChatModel.created_at.desc(),
            ChatModel.id.asc(),
            skip=skip,
            limit=limit,
        )

    def search_statement(self, scope: QueryScope, text: str) -> Select[tuple[ChatModel]]:
        """Case-insensitive literal substring of the title or of any tag."""
        pattern = contains_pattern(text.strip())
        # Tags are joined with a unit separator so a match cannot span two tags
        tags_text = func.array_to_string(ChatModel.tags, TAG_SEPARATOR)
        stmt = select(ChatModel).where(
            or_(
                ChatModel.title.ilike(pattern, escape="\\"),
                tags_text.ilike(pattern, escape="\\"),
            )
        )
        return self.scoped(stmt, scope)

    async def search_scoped(
        self,
        scope: QueryScope,
        text: str,
        *,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Chat], int]:
        """Search chats by title or tag within the scope, newest first."""
        return await self._fetch_page(
            self.search_statement(scope, text),
            ChatModel.created_at.desc(),
            ChatModel.id.asc(),
            skip=skip,
            limit=limit,
        )

    async def list_for_export(
        self,
        org_id: UUID,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: UUID | None = None,
    ) -> list[Chat]:
        """List chats of an organization chronologically."""
        stmt = select(ChatModel).where(ChatModel.organization_id == org_id)
        if start is not None:
            stmt = stmt.where(ChatModel.created_at >= start)
        if end is not None:
            stmt = stmt.where(ChatModel.created_at <= end)
        if user_id is not None:
            stmt = stmt.where(ChatModel.user_id == user_id)
        stmt = stmt.order_by(ChatModel.created_at.asc(), ChatModel.id.asc())
        result = await self.session.execute(stmt)
        return [model.to_entity() for model in result.scalars().all()]

    async def delete_with_messages(self, chat_id: UUID) -> bool:
        """Delete a chat and all of its messages."""
        await self.session.execute(delete(MessageModel).where(MessageModel.chat_id == chat_id))
        result = await self.session.execute(delete(ChatModel).where(ChatModel.id == chat_id))
        await self.session.flush()
        return result.rowcount > 0
