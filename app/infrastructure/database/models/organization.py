"""Organization database model."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.entities.organization import Organization
from app.infrastructure.database.models.base import Base, TimestampMixin


class OrganizationModel(Base, TimestampMixin):
    """SQLAlchemy model for organizations table."""

    __tablename__ = "organizations"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    api_key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    settings: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Relationships
    users = relationship("UserModel", back_populates="organization")

    def to_entity(self) -> Organization:
        """Convert to domain entity."""
        return Organization(
            id=self.id,
            name=self.name,
            api_key_hash=self.api_key_hash,
            is_active=self.is_active,
            settings=self.settings or {},
            contact_email=self.contact_email,
            description=self.description or "",
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: Organization) -> "OrganizationModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            name=entity.name,
            api_key_hash=entity.api_key_hash,
            is_active=entity.is_active,
            settings=entity.settings,
            contact_email=entity.contact_email,
            description=entity.description,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
