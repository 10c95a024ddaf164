"""Message database model."""

from uuid import UUID, uuid4

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.entities.message import Message
from app.infrastructure.database.models.base import Base, TimestampMixin


class MessageModel(Base, TimestampMixin):
    """SQLAlchemy model for messages table."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    chat_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    function_call: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    tool_calls: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    metadata_: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    # Usage
    tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prompt_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    latency: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Relationships
    chat = relationship("ChatModel", back_populates="messages")

    __table_args__ = (Index("messages_chat_created_idx", "chat_id", "created_at"),)

    def to_entity(self) -> Message:
        """Convert to domain entity."""
        return Message(
            id=self.id,
            chat_id=self.chat_id,
            user_id=self.user_id,
            organization_id=self.organization_id,
            role=self.role,
            content=self.content,
            name=self.name,
            function_call=self.function_call,
            tool_calls=self.tool_calls,
            metadata=self.metadata_ or {},
            tokens=self.tokens,
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            latency=self.latency,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: Message) -> "MessageModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            chat_id=entity.chat_id,
            user_id=entity.user_id,
            organization_id=entity.organization_id,
            role=entity.role,
            content=entity.content,
            name=entity.name,
            function_call=entity.function_call,
            tool_calls=entity.tool_calls,
            metadata_=entity.metadata,
            tokens=entity.tokens,
            prompt_tokens=entity.prompt_tokens,
            completion_tokens=entity.completion_tokens,
            latency=entity.latency,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
