"""Chat database model."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.entities.chat import Chat
from app.infrastructure.database.models.base import Base, TimestampMixin


class ChatModel(Base, TimestampMixin):
    """SQLAlchemy model for chats table."""

    __tablename__ = "chats"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
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
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="web")
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    metadata_: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    messages = relationship(
        "MessageModel",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("chats_org_created_idx", "organization_id", "created_at"),
        Index("chats_user_org_idx", "user_id", "organization_id"),
    )

    def to_entity(self) -> Chat:
        """Convert to domain entity."""
        return Chat(
            id=self.id,
            user_id=self.user_id,
            organization_id=self.organization_id,
            title=self.title,
            source=self.source,
            tags=list(self.tags or []),
            metadata=self.metadata_ or {},
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: Chat) -> "ChatModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            organization_id=entity.organization_id,
            title=entity.title,
            source=entity.source,
            tags=entity.tags,
            metadata_=entity.metadata,
            is_active=entity.is_active,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
