"""Message repository implementation."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.message import Message
from app.infrastructure.database.models.message import MessageModel
from app.infrastructure.repositories.base import BaseRepository


class MessageRepositoryImpl(BaseRepository[MessageModel, Message]):
    """SQLAlchemy implementation of MessageRepository.

    Messages are always addressed through their parent chat, which the
    caller has already loaded under its query scope.
    """

    model_class = MessageModel

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_in_chat(self, message_id: UUID, chat_id: UUID) -> Message | None:
        """Get a message belonging to the chat."""
        stmt = select(MessageModel).where(
            MessageModel.id == message_id,
            MessageModel.chat_id == chat_id,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def list_in_chat(
        self, chat_id: UUID, *, skip: int = 0, limit: int = 10
    ) -> tuple[list[Message], int]:
        """List messages of a chat, oldest first."""
        return await self._fetch_page(
            select(MessageModel).where(MessageModel.chat_id == chat_id),
            MessageModel.created_at.asc(),
            MessageModel.id.asc(),
            skip=skip,
            limit=limit,
        )

    async def list_for_chats(self, chat_ids: Sequence[UUID]) -> list[Message]:
        """List all messages of the chats, oldest first."""
        if not chat_ids:
            return []
        stmt = (
            select(MessageModel)
            .where(MessageModel.chat_id.in_(list(chat_ids)))
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self.session.execute(stmt)
        return [model.to_entity() for model in result.scalars().all()]

    async def create_many(self, messages: Sequence[Message]) -> list[Message]:
        """Create messages in one flush."""
        models = [MessageModel.from_entity(message) for message in messages]
        self.session.add_all(models)
        await self._flush("create_many")
        for model in models:
            await self.session.refresh(model)
        return [model.to_entity() for model in models]

    async def delete_in_chat(self, message_id: UUID, chat_id: UUID) -> bool:
        """Delete a message belonging to the chat."""
        result = await self.session.execute(
            delete(MessageModel).where(
                MessageModel.id == message_id,
                MessageModel.chat_id == chat_id,
            )
        )
        await self.session.flush()
        return result.rowcount > 0
