"""Export service - bulk JSON exports for admins."""

from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.context import RequestContext
from app.application.policy import AccessPolicy, Operation, access_policy
from app.domain.entities import Chat, Message
from app.domain.entities.analytics import UserActivity
from app.domain.protocols.repositories import (
    AnalyticsRepository,
    ChatRepository,
    MessageRepository,
)
from app.infrastructure.repositories import (
    AnalyticsRepositoryImpl,
    ChatRepositoryImpl,
    MessageRepositoryImpl,
)
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)


@dataclass
class ChatExport:
    chat: Chat
    messages: list[Message]


class ExportService:
    def __init__(
        self,
        chats: ChatRepository,
        messages: MessageRepository,
        analytics: AnalyticsRepository,
        policy: AccessPolicy = access_policy,
    ):
        self.chats = chats
        self.messages = messages
        self.analytics = analytics
        self.policy = policy

    @classmethod
    def from_session(cls, db: AsyncSession) -> "ExportService":
        return cls(ChatRepositoryImpl(db), MessageRepositoryImpl(db), AnalyticsRepositoryImpl(db))

    async def chats_with_messages(
        self, ctx: RequestContext, *, user_id: UUID | None = None
    ) -> list[ChatExport]:
        """Chats of the organization with their messages, oldest first.

        The request window, when present, bounds chat creation time.
        """
        self.policy.authorize(ctx, Operation.EXPORT_READ)
        window = ctx.window
        chats = await self.chats.list_for_export(
            ctx.organization_id,
            start=window.start if window else None,
            end=window.end if window else None,
            user_id=user_id,
        )

        grouped: dict[UUID, list[Message]] = defaultdict(list)
        for message in await self.messages.list_for_chats([chat.id for chat in chats]):
            grouped[message.chat_id].append(message)

        logger.info(
            "Chats exported",
            extra={"organization_id": str(ctx.organization_id), "chats": len(chats)},
        )
        return [ChatExport(chat=chat, messages=grouped.get(chat.id, [])) for chat in chats]

    async def user_activity(self, ctx: RequestContext) -> list[UserActivity]:
        """Every user of the organization with its chat count."""
        self.policy.authorize(ctx, Operation.EXPORT_READ)
        return await self.analytics.user_activity(ctx.organization_id)
