"""User repository implementation."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.user import User
from app.domain.errors import DuplicateUserError
from app.domain.roles import Role
from app.infrastructure.database.models.user import UserModel
from app.infrastructure.repositories.base import BaseRepository, contains_pattern

# Columns a caller may sort user listings by
SORTABLE_COLUMNS = {
    "username": UserModel.username,
    "email": UserModel.email,
    "role": UserModel.role,
    "createdAt": UserModel.created_at,
    "isActive": UserModel.is_active,
}


class UserRepositoryImpl(BaseRepository[UserModel, User]):
    """SQLAlchemy implementation of UserRepository."""

    model_class = UserModel
    conflict_error = DuplicateUserError

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return await super().get_by_id(user_id)

    async def get_in_organization(self, user_id: UUID, org_id: UUID) -> User | None:
        """Get user by ID only if it belongs to the organization."""
        stmt = select(UserModel).where(
            UserModel.id == user_id,
            UserModel.organization_id == org_id,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_api_key_hash(self, api_key_hash: str) -> User | None:
        """Get user by API key digest."""
        stmt = select(UserModel).where(UserModel.api_key_hash == api_key_hash)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def find_by_username_or_email(self, username: str, email: str) -> User | None:
        """Find any user holding the username or the email."""
        stmt = (
            select(UserModel)
            .where(or_(UserModel.username == username, UserModel.email == email.strip().lower()))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def get_many(self, user_ids: Sequence[UUID]) -> list[User]:
        """Get users by IDs."""
        if not user_ids:
            return []
        stmt = select(UserModel).where(UserModel.id.in_(list(user_ids)))
        result = await self.session.execute(stmt)
        return [model.to_entity() for model in result.scalars().all()]

    def search_statement(
        self,
        org_id: UUID | None,
        *,
        username: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> Select[tuple[UserModel]]:
        """Build the filtered user select (unordered, unpaged)."""
        stmt = select(UserModel)
        if org_id is not None:
            stmt = stmt.where(UserModel.organization_id == org_id)
        if username:
            stmt = stmt.where(UserModel.username.ilike(contains_pattern(username), escape="\\"))
        if email:
            stmt = stmt.where(UserModel.email.ilike(contains_pattern(email), escape="\\"))
        if role is not None:
            stmt = stmt.where(UserModel.role == role.value)
        if is_active is not None:
            stmt = stmt.where(UserModel.is_active.is_(is_active))
        return stmt

    async def search(
        self,
        org_id: UUID | None,
        *,
        username: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
        sort_by: str = "username",
        descending: bool = False,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """Filter users; unknown sort keys fall back to username."""
        column = SORTABLE_COLUMNS.get(sort_by, UserModel.username)
        stmt = self.search_statement(
            org_id, username=username, email=email, role=role, is_active=is_active
        )
        return await self._fetch_page(
            stmt,
            column.desc() if descending else column.asc(),
            UserModel.id.asc(),
            skip=skip,
            limit=limit,
        )

    async def count_in_organization(self, org_id: UUID, active_only: bool = False) -> int:
        """Count users of an organization."""
        stmt = select(func.count(UserModel.id)).where(UserModel.organization_id == org_id)
        if active_only:
            stmt = stmt.where(UserModel.is_active.is_(True))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
