"""Organization service - tenant lifecycle and API keys."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.pagination import PageWindow
from app.application.policy import AccessPolicy, Operation, access_policy
from app.domain.entities import CallerIdentity, Organization, generate_api_key, hash_api_key
from app.domain.errors import (
    DuplicateOrganizationError,
    OrganizationInUseError,
    OrganizationNotFoundError,
    ValidationError,
)
from app.domain.protocols.repositories import OrganizationRepository, UserRepository
from app.infrastructure.repositories import OrganizationRepositoryImpl, UserRepositoryImpl
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)


class OrganizationService:
    """Service for managing organizations.

    Organizations are addressed by id directly rather than through the
    request's organization context, so inactive ones stay reachable for
    reactivation. Tenancy is still enforced by the access policy.
    """

    def __init__(
        self,
        organizations: OrganizationRepository,
        users: UserRepository,
        policy: AccessPolicy = access_policy,
    ):
        self.organizations = organizations
        self.users = users
        self.policy = policy

    @classmethod
    def from_session(cls, db: AsyncSession) -> "OrganizationService":
        return cls(OrganizationRepositoryImpl(db), UserRepositoryImpl(db))

    async def create(
        self,
        identity: CallerIdentity,
        name: str,
        *,
        contact_email: str | None = None,
        description: str = "",
        settings: dict[str, Any] | None = None,
    ) -> tuple[Organization, str]:
        """Create an organization.

        Returns:
            The organization and its plaintext API key, shown only once

        Raises:
            DuplicateOrganizationError: If the name is taken
        """
        self.policy.enforce(identity, None, Operation.ORG_CREATE)

        if await self.organizations.get_by_name(name):
            raise DuplicateOrganizationError(details={"name": name})

        api_key = generate_api_key()
        try:
            org = Organization(
                id=uuid4(),
                name=name,
                api_key_hash=hash_api_key(api_key),
                settings=settings or {},
                contact_email=contact_email,
                description=description or "",
            )
        except ValueError as e:
            raise ValidationError(message=str(e)) from e

        created = await self.organizations.create(org)

        logger.info(
            "Organization created",
            extra={"organization_id": str(created.id), "created_by": str(identity.id)},
        )
        return created, api_key

    async def list_organizations(
        self, identity: CallerIdentity, window: PageWindow
    ) -> tuple[list[Organization], int]:
        """List organizations by name (superadmin only)."""
        self.policy.enforce(identity, None, Operation.ORG_LIST)
        return await self.organizations.list_page(window.skip, window.limit)

    async def get(self, identity: CallerIdentity, org_id: UUID) -> tuple[Organization, int]:
        """Get an organization with its user count."""
        self.policy.enforce(identity, org_id, Operation.ORG_READ)
        org = await self._load(org_id)
        user_count = await self.users.count_in_organization(org.id)
        return org, user_count

    async def update(
        self,
        identity: CallerIdentity,
        org_id: UUID,
        *,
        name: str | None = None,
        is_active: bool | None = None,
        settings: dict[str, Any] | None = None,
        contact_email: str | None = None,
        description: str | None = None,
    ) -> Organization:
        """Partially update an organization; settings are merged.

        Raises:
            SelfDeactivationError: If an admin deactivates its own organization
            DuplicateOrganizationError: If the new name is taken
        """
        self.policy.enforce(
            identity,
            org_id,
            Operation.ORG_UPDATE,
            deactivate=is_active is False,
        )
        org = await self._load(org_id)

        if name is not None and name.strip() != org.name:
            if not name.strip():
                raise ValidationError(message="Organization name is required")
            if await self.organizations.get_by_name(name):
                raise DuplicateOrganizationError(details={"name": name})
            org.name = name.strip()

        if is_active is not None:
            org.is_active = is_active
        if settings is not None:
            org.merge_settings(settings)
        if contact_email is not None:
            org.contact_email = contact_email
        if description is not None:
            org.description = description
        org.updated_at = datetime.now(UTC)

        updated = await self.organizations.update(org)

        logger.info(
            "Organization updated",
            extra={"organization_id": str(org_id), "updated_by": str(identity.id)},
        )
        return updated

    async def delete(self, identity: CallerIdentity, org_id: UUID) -> None:
        """Delete an organization that owns no active users.

        Raises:
            OrganizationInUseError: If active users remain
        """
        self.policy.enforce(identity, org_id, Operation.ORG_DELETE)
        org = await self._load(org_id)

        active_users = await self.users.count_in_organization(org.id, active_only=True)
        if active_users > 0:
            raise OrganizationInUseError(
                message="Cannot delete organization with active users",
                details={"organization_id": str(org_id), "active_users": active_users},
            )

        await self.organizations.delete(org.id)
        logger.info(
            "Organization deleted",
            extra={"organization_id": str(org_id), "deleted_by": str(identity.id)},
        )

    async def rotate_api_key(
        self, identity: CallerIdentity, org_id: UUID
    ) -> tuple[Organization, str]:
        """Issue a new API key, invalidating the previous one."""
        self.policy.enforce(identity, org_id, Operation.ORG_ROTATE_KEY)
        org = await self._load(org_id)

        api_key = org.rotate_api_key()
        updated = await self.organizations.update(org)

        logger.info(
            "Organization API key rotated",
            extra={"organization_id": str(org_id), "rotated_by": str(identity.id)},
        )
        return updated, api_key

    async def _load(self, org_id: UUID) -> Organization:
        org = await self.organizations.get_by_id(org_id)
        if org is None:
            raise OrganizationNotFoundError(details={"organization_id": str(org_id)})
        return org
