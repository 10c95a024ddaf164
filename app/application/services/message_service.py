"""Message service - turns logged inside a chat."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.context import RequestContext
from app.application.policy import AccessPolicy, Operation, access_policy
from app.domain.entities import Chat, Message
from app.domain.errors import ChatNotFoundError, MessageNotFoundError, ValidationError
from app.domain.protocols.repositories import ChatRepository, MessageRepository
from app.infrastructure.repositories import ChatRepositoryImpl, MessageRepositoryImpl
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

MESSAGE_FIELDS = (
    "role",
    "content",
    "name",
    "function_call",
    "tool_calls",
    "metadata",
    "tokens",
    "prompt_tokens",
    "completion_tokens",
    "latency",
)


class MessageService:
    """Service for chat messages.

    The parent chat is always loaded first under the caller's query scope;
    a chat outside the scope hides all of its messages.
    """

    def __init__(
        self,
        chats: ChatRepository,
        messages: MessageRepository,
        policy: AccessPolicy = access_policy,
    ):
        self.chats = chats
        self.messages = messages
        self.policy = policy

    @classmethod
    def from_session(cls, db: AsyncSession) -> "MessageService":
        return cls(ChatRepositoryImpl(db), MessageRepositoryImpl(db))

    async def add(self, ctx: RequestContext, chat_id: UUID, fields: dict[str, Any]) -> Message:
        """Append one message to a chat."""
        created = await self.add_batch(ctx, chat_id, [fields], operation=Operation.MESSAGE_ADD)
        return created[0]

    async def add_batch(
        self,
        ctx: RequestContext,
        chat_id: UUID,
        items: Sequence[dict[str, Any]],
        *,
        operation: Operation = Operation.MESSAGE_BATCH,
    ) -> list[Message]:
        """Append messages to a chat and refresh its last activity.

        Raises:
            ValidationError: If the batch is empty or a message is malformed
        """
        self.policy.authorize(ctx, operation)
        if not items:
            raise ValidationError(message="Messages array is required and must not be empty")

        chat = await self._load_chat(ctx, chat_id)

        messages = [self._build(ctx, chat, item) for item in items]
        if len(messages) == 1:
            created = [await self.messages.create(messages[0])]
        else:
            created = await self.messages.create_many(messages)

        chat.touch()
        await self.chats.update(chat)

        logger.info(
            "Messages added",
            extra={"chat_id": str(chat_id), "count": len(created)},
        )
        return created

    async def list_messages(
        self, ctx: RequestContext, chat_id: UUID
    ) -> tuple[list[Message], int]:
        """List a chat's messages, oldest first."""
        self.policy.authorize(ctx, Operation.MESSAGE_LIST)
        chat = await self._load_chat(ctx, chat_id)
        return await self.messages.list_in_chat(
            chat.id,
            skip=ctx.pagination.skip,
            limit=ctx.pagination.limit,
        )

    async def get(self, ctx: RequestContext, chat_id: UUID, message_id: UUID) -> Message:
        self.policy.authorize(ctx, Operation.MESSAGE_READ)
        chat = await self._load_chat(ctx, chat_id)
        return await self._load_message(chat, message_id)

    async def update(
        self,
        ctx: RequestContext,
        chat_id: UUID,
        message_id: UUID,
        *,
        content: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Update content and merge metadata."""
        self.policy.authorize(ctx, Operation.MESSAGE_UPDATE)
        chat = await self._load_chat(ctx, chat_id)
        message = await self._load_message(chat, message_id)

        if content is not None:
            message.content = content
        if metadata is not None:
            message.metadata = {**message.metadata, **metadata}
        message.updated_at = datetime.now(UTC)

        return await self.messages.update(message)

    async def delete(self, ctx: RequestContext, chat_id: UUID, message_id: UUID) -> None:
        self.policy.authorize(ctx, Operation.MESSAGE_DELETE)
        chat = await self._load_chat(ctx, chat_id)
        if not await self.messages.delete_in_chat(message_id, chat.id):
            raise MessageNotFoundError(details={"message_id": str(message_id)})
        logger.info(
            "Message deleted",
            extra={"chat_id": str(chat_id), "message_id": str(message_id)},
        )

    async def _load_chat(self, ctx: RequestContext, chat_id: UUID) -> Chat:
        chat = await self.chats.get_scoped(chat_id, ctx.scope)
        if chat is None:
            raise ChatNotFoundError(
                message="Chat not found or access denied",
                details={"chat_id": str(chat_id)},
            )
        return chat

    async def _load_message(self, chat: Chat, message_id: UUID) -> Message:
        message = await self.messages.get_in_chat(message_id, chat.id)
        if message is None:
            raise MessageNotFoundError(details={"message_id": str(message_id)})
        return message

    @staticmethod
    def _build(ctx: RequestContext, chat: Chat, item: dict[str, Any]) -> Message:
        fields = {key: item[key] for key in MESSAGE_FIELDS if item.get(key) is not None}
        try:
            return Message(
                id=uuid4(),
                chat_id=chat.id,
                user_id=ctx.identity.id,
                organization_id=chat.organization_id,
                **fields,
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(message=str(e)) from e
