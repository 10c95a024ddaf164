"""User database model."""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.entities.user import User
from app.domain.roles import Role
from app.infrastructure.database.models.base import Base, TimestampMixin


class UserModel(Base, TimestampMixin):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    organization_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # Unique only when present; postgres treats NULLs as distinct
    api_key_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

    # Relationships
    organization = relationship("OrganizationModel", back_populates="users")

    def to_entity(self) -> User:
        """Convert to domain entity."""
        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            role=Role.parse(self.role),
            organization_id=self.organization_id,
            is_active=self.is_active,
            first_name=self.first_name,
            last_name=self.last_name,
            api_key_hash=self.api_key_hash,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: User) -> "UserModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            username=entity.username,
            email=entity.email,
            role=entity.role.value,
            organization_id=entity.organization_id,
            is_active=entity.is_active,
            first_name=entity.first_name,
            last_name=entity.last_name,
            api_key_hash=entity.api_key_hash,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
