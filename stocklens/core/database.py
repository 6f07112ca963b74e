"""Async SQLAlchemy 2.0 access to the inventory star schema.

The API shares one engine for its whole lifetime (created on first use,
disposed at shutdown). Scripts build their own engine with ``get_engine`` and
dispose of it when done.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from stocklens.core.config import get_settings
from stocklens.core.logging import get_logger

logger = get_logger(__name__)

_app_engine: AsyncEngine | None = None


class Base(DeclarativeBase):
    """Declarative base for the store, product and fact tables."""


def get_engine() -> AsyncEngine:
    """Create a new async engine from settings."""
    settings = get_settings()
    engine: AsyncEngine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )
    return engine


def get_session_maker(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine`` (the shared API engine by default)."""
    return async_sessionmaker(
        engine or get_app_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_app_engine() -> AsyncEngine:
    """The engine shared by API requests, created on first use."""
    global _app_engine
    if _app_engine is None:
        _app_engine = get_engine()
        logger.info("database.engine_created", url=_app_engine.url.render_as_string())
    return _app_engine


async def dispose_app_engine() -> None:
    """Close the shared engine's pool, if it was ever created."""
    global _app_engine
    if _app_engine is not None:
        await _app_engine.dispose()
        _app_engine = None
        logger.info("database.engine_disposed")


async def create_schema(engine: AsyncEngine) -> None:
    """Create all star-schema tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
