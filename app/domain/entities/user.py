"""User entity and the per-request caller identity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from app.domain.roles import Role


@dataclass
class User:
    """A persisted account belonging to (at most) one organization."""

    id: UUID
    username: str
    email: str
    role: Role = Role.USER
    organization_id: UUID | None = None
    is_active: bool = True
    first_name: str | None = None
    last_name: str | None = None
    api_key_hash: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.username:
            raise ValueError("User username is required")
        if not self.email:
            raise ValueError("User email is required")
        self.role = Role.parse(self.role)
        self.email = self.email.strip().lower()
        if self.role is not Role.SUPERADMIN and self.organization_id is None:
            raise ValueError("User organization_id is required for non-superadmin roles")

    def to_identity(self) -> "CallerIdentity":
        """Project the account onto the identity used for access decisions."""
        return CallerIdentity(
            id=self.id,
            role=self.role,
            organization_id=self.organization_id,
            is_active=self.is_active,
            username=self.username,
            email=self.email,
        )


@dataclass(frozen=True)
class CallerIdentity:
    """Resolved caller for one request. Never persisted."""

    id: UUID
    role: Role
    organization_id: UUID | None = None
    is_active: bool = True
    username: str | None = None
    email: str | None = None

    @property
    def is_superadmin(self) -> bool:
        return self.role is Role.SUPERADMIN
