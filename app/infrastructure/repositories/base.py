"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.errors import ConflictError
from app.domain.scope import QueryScope
from app.infrastructure.database.models.base import Base
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
EntityType = TypeVar("EntityType")


def contains_pattern(value: str) -> str:
    """ILIKE pattern matching `value` literally anywhere in the column."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BaseRepository(Generic[ModelType, EntityType]):
    """Base repository providing common CRUD operations.

    Subclasses should set:
    - model_class: The SQLAlchemy model class
    - conflict_error: Error raised when a unique constraint rejects a write

    Models implement to_entity and from_entity.
    """

    model_class: type[ModelType]
    conflict_error: type[ConflictError] = ConflictError

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> EntityType | None:
        """Get entity by primary key."""
        result = await self.session.get(self.model_class, id)
        if result is None:
            return None
        return result.to_entity()

    async def create(self, entity: EntityType) -> EntityType:
        """Create a new entity."""
        model = self.model_class.from_entity(entity)
        self.session.add(model)
        await self._flush("create")
        await self.session.refresh(model)
        return model.to_entity()

    async def update(self, entity: EntityType) -> EntityType:
        """Update an existing entity."""
        model = self.model_class.from_entity(entity)
        merged = await self.session.merge(model)
        await self._flush("update")
        await self.session.refresh(merged)
        return merged.to_entity()

    async def delete(self, id: UUID) -> bool:
        """Delete entity by ID."""
        result = await self.session.get(self.model_class, id)
        if result is None:
            return False
        await self.session.delete(result)
        await self.session.flush()
        return True

    async def _flush(self, operation: str) -> None:
        """Flush pending writes, translating unique violations to a conflict."""
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "Unique constraint rejected write",
                extra={"table": self.model_class.__tablename__, "operation": operation},
            )
            raise self.conflict_error(details={"table": self.model_class.__tablename__}) from e

    async def _fetch_page(
        self,
        stmt: Select[Any],
        *order_by: Any,
        skip: int,
        limit: int,
    ) -> tuple[list[EntityType], int]:
        """Run a filtered select as (page of entities, total matching rows)."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        page_stmt = stmt.order_by(*order_by).offset(skip).limit(limit)
        result = await self.session.execute(page_stmt)
        return [model.to_entity() for model in result.scalars().all()], int(total)


class OrgScopedRepository(BaseRepository[ModelType, EntityType]):
    """Repository for org-scoped entities.

    Every query goes through `scoped`, which applies the organization filter
    and, for callers below admin, the owner filter.
    """

    def scoped(self, stmt: Select[Any], scope: QueryScope) -> Select[Any]:
        """Restrict a select to the rows visible within the scope."""
        stmt = stmt.where(self.model_class.organization_id == scope.organization_id)
        if scope.user_id is not None:
            stmt = stmt.where(self.model_class.user_id == scope.user_id)
        return stmt

    async def get_scoped(self, id: UUID, scope: QueryScope) -> EntityType | None:
        """Get entity by ID within the scope."""
        stmt = self.scoped(select(self.model_class).where(self.model_class.id == id), scope)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return model.to_entity()
