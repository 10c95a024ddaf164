"""Async engine, per-request sessions and the readiness ping."""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import Settings, get_settings
from app.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

# Built lazily on first use, disposed by close_db
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the asyncpg engine."""
    global _engine

    if _engine is None:
        settings = settings or get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
            echo=settings.debug,
        )
    return _engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory.

    Entities are mapped out of ORM rows before the session closes, so
    nothing relies on lazy loads after commit.
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(settings),
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def init_db(settings: Settings | None = None) -> AsyncEngine:
    """Build the engine and session factory at startup."""
    engine = get_engine(settings)
    get_session_factory(settings)
    return engine


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request.

    Commits when the handler returns. Any exception, including a denied
    access check raised after a flush, rolls the request's writes back.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.debug("Request transaction rolled back", extra={"error_type": type(e).__name__})
            raise


async def ping(session: AsyncSession) -> bool:
    """Check that the database answers a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database ping failed", extra={"error": str(e)})
        return False
    return True
