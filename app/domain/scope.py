"""Query scope: the tenancy filter every non-superadmin query carries."""

from dataclasses import dataclass
from uuid import UUID

from app.domain.entities.user import CallerIdentity
from app.domain.roles import Role, at_least


@dataclass(frozen=True)
class QueryScope:
    """Rows visible to a caller inside one organization.

    `user_id` is set when the caller may only see its own rows.
    """

    organization_id: UUID
    user_id: UUID | None = None

    @classmethod
    def for_caller(cls, identity: CallerIdentity, organization_id: UUID) -> "QueryScope":
        """Organization filter always; owner filter below admin."""
        if at_least(identity.role, Role.ADMIN):
            return cls(organization_id=organization_id)
        return cls(organization_id=organization_id, user_id=identity.id)
