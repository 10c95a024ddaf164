"""Organization repository implementation."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.organization import Organization
from app.domain.errors import DuplicateOrganizationError
from app.infrastructure.database.models.organization import OrganizationModel
from app.infrastructure.repositories.base import BaseRepository


class OrganizationRepositoryImpl(BaseRepository[OrganizationModel, Organization]):
    """SQLAlchemy implementation of OrganizationRepository."""

    model_class = OrganizationModel
    conflict_error = DuplicateOrganizationError

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_id(self, org_id: UUID) -> Organization | None:
        """Get organization by ID."""
        return await super().get_by_id(org_id)

    async def get_by_name(self, name: str) -> Organization | None:
        """Get organization by name."""
        stmt = select(OrganizationModel).where(OrganizationModel.name == name.strip())
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_active_by_api_key_hash(self, api_key_hash: str) -> Organization | None:
        """Get an active organization by API key digest."""
        stmt = select(OrganizationModel).where(
            OrganizationModel.api_key_hash == api_key_hash,
            OrganizationModel.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def list_page(self, skip: int, limit: int) -> tuple[list[Organization], int]:
        """List organizations in name order."""
        return await self._fetch_page(
            select(OrganizationModel),
            OrganizationModel.name.asc(),
            skip=skip,
            limit=limit,
        )
