"""User service - profiles, user administration and search."""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.context import RequestContext
from app.application.policy import AccessPolicy, Operation, ResourceOwner, access_policy
from app.domain.entities import CallerIdentity, User, generate_api_key, hash_api_key
from app.domain.errors import (
    DuplicateUserError,
    InvalidRoleError,
    OrganizationNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.domain.protocols.repositories import OrganizationRepository, UserRepository
from app.domain.roles import Role
from app.infrastructure.repositories import OrganizationRepositoryImpl, UserRepositoryImpl
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

PRIVILEGED_ROLES = (Role.ADMIN, Role.SUPERADMIN)
SORT_FIELDS = ("username", "email", "role", "createdAt", "isActive")


def parse_role(value: str | Role | None) -> Role | None:
    """Parse an optional role filter or change.

    Raises:
        InvalidRoleError: If the value is not a known role
    """
    if value is None:
        return None
    try:
        return Role.parse(value)
    except ValueError as e:
        raise InvalidRoleError(details={"role": str(value)}) from e


class UserService:
    """Service for user accounts.

    A user sees only itself, an admin sees the users of its organization and
    a superadmin sees everyone.
    """

    def __init__(
        self,
        users: UserRepository,
        organizations: OrganizationRepository,
        policy: AccessPolicy = access_policy,
    ):
        self.users = users
        self.organizations = organizations
        self.policy = policy

    @classmethod
    def from_session(cls, db: AsyncSession) -> "UserService":
        return cls(UserRepositoryImpl(db), OrganizationRepositoryImpl(db))

    async def profile(self, identity: CallerIdentity) -> User:
        """Get the caller's own account."""
        self.policy.enforce(identity, identity.organization_id, Operation.PROFILE_READ)
        user = await self.users.get_by_id(identity.id)
        if user is None:
            raise UserNotFoundError(details={"user_id": str(identity.id)})
        return user

    async def rotate_api_key(self, identity: CallerIdentity) -> str:
        """Replace the caller's personal API key and return the plaintext once."""
        self.policy.enforce(identity, identity.organization_id, Operation.PROFILE_ROTATE_KEY)
        user = await self.users.get_by_id(identity.id)
        if user is None:
            raise UserNotFoundError(details={"user_id": str(identity.id)})
        api_key = generate_api_key()
        await self.users.update(
            replace(user, api_key_hash=hash_api_key(api_key), updated_at=datetime.now(UTC))
        )
        logger.info("User API key rotated", extra={"user_id": str(user.id)})
        return api_key

    async def get(self, identity: CallerIdentity, user_id: UUID) -> User:
        """Get a user the caller may see.

        Raises:
            UserNotFoundError: If the user does not exist or lies outside the
                caller's organization
            NotOwnerError: If a plain user asks for someone else
        """
        target = await self._load_visible(identity, user_id)
        self.policy.enforce(
            identity,
            identity.organization_id,
            Operation.USER_READ,
            owner=ResourceOwner(target.id, target.organization_id),
        )
        return target

    async def update(
        self,
        identity: CallerIdentity,
        user_id: UUID,
        *,
        username: str | None = None,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        role: str | Role | None = None,
        is_active: bool | None = None,
    ) -> User:
        """Partially update a user.

        Role and active flag changes need at least admin; only a superadmin
        may grant the superadmin role.
        """
        new_role = parse_role(role)
        target = await self._load_visible(identity, user_id)

        if new_role is not None or is_active is not None:
            self.policy.enforce(identity, identity.organization_id, Operation.USER_MANAGE)
        self.policy.enforce(
            identity,
            identity.organization_id,
            Operation.USER_UPDATE,
            owner=ResourceOwner(target.id, target.organization_id),
            requested_role=new_role,
        )

        if username is not None or email is not None:
            existing = await self.users.find_by_username_or_email(
                username or target.username, email or target.email
            )
            if existing is not None and existing.id != target.id:
                raise DuplicateUserError(details={"user_id": str(user_id)})

        try:
            updated = replace(
                target,
                username=username if username is not None else target.username,
                email=email if email is not None else target.email,
                first_name=first_name if first_name is not None else target.first_name,
                last_name=last_name if last_name is not None else target.last_name,
                role=new_role if new_role is not None else target.role,
                is_active=is_active if is_active is not None else target.is_active,
                updated_at=datetime.now(UTC),
            )
        except ValueError as e:
            raise ValidationError(message=str(e)) from e

        saved = await self.users.update(updated)
        logger.info(
            "User updated",
            extra={"user_id": str(user_id), "updated_by": str(identity.id)},
        )
        return saved

    async def list_in_organization(
        self,
        ctx: RequestContext,
        *,
        role: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[User], int]:
        """List users of the context organization in username order."""
        self.policy.authorize(ctx, Operation.USER_LIST)
        return await self.users.search(
            ctx.organization_id,
            role=parse_role(role),
            is_active=is_active,
            skip=ctx.pagination.skip,
            limit=ctx.pagination.limit,
        )

    async def search(
        self,
        ctx: RequestContext,
        *,
        username: str | None = None,
        email: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
        sort_by: str = "username",
        sort_order: Literal["asc", "desc"] = "asc",
    ) -> tuple[list[User], int]:
        """Search users of the context organization.

        Text filters are case-insensitive literal substrings; sort keys
        outside the allowed set fall back to username.
        """
        self.policy.authorize(ctx, Operation.USER_SEARCH)
        return await self.users.search(
            ctx.organization_id,
            username=username,
            email=email,
            role=parse_role(role),
            is_active=is_active,
            sort_by=sort_by if sort_by in SORT_FIELDS else "username",
            descending=sort_order == "desc",
            skip=ctx.pagination.skip,
            limit=ctx.pagination.limit,
        )

    async def create_privileged(
        self,
        identity: CallerIdentity,
        *,
        username: str,
        email: str,
        role: str | Role,
        organization_id: UUID | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> tuple[User, str]:
        """Create an admin or superadmin account.

        Returns:
            The user and its plaintext API key, shown only once
        """
        new_role = parse_role(role)
        self.policy.enforce(
            identity, None, Operation.USER_CREATE_PRIVILEGED, requested_role=new_role
        )
        if new_role not in PRIVILEGED_ROLES:
            raise InvalidRoleError(
                message="Role must be admin or superadmin",
                details={"role": str(role)},
            )

        if organization_id is not None:
            org = await self.organizations.get_by_id(organization_id)
            if org is None or not org.is_active:
                raise OrganizationNotFoundError(
                    details={"organization_id": str(organization_id)}
                )

        if await self.users.find_by_username_or_email(username, email):
            raise DuplicateUserError()

        api_key = generate_api_key()
        try:
            user = User(
                id=uuid4(),
                username=username,
                email=email,
                role=new_role,
                organization_id=organization_id,
                first_name=first_name,
                last_name=last_name,
                api_key_hash=hash_api_key(api_key),
            )
        except ValueError as e:
            raise ValidationError(message=str(e)) from e

        created = await self.users.create(user)
        logger.info(
            "Privileged user created",
            extra={
                "user_id": str(created.id),
                "role": created.role.value,
                "created_by": str(identity.id),
            },
        )
        return created, api_key

    async def _load_visible(self, identity: CallerIdentity, user_id: UUID) -> User:
        if identity.is_superadmin:
            user = await self.users.get_by_id(user_id)
        elif identity.organization_id is not None:
            user = await self.users.get_in_organization(user_id, identity.organization_id)
        else:
            user = None

        if user is None:
            raise UserNotFoundError(
                message="User not found or access denied",
                details={"user_id": str(user_id)},
            )
        return user
