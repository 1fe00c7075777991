"""
Database engine and session factory.

One async engine per process, created lazily on first use and disposed on
shutdown. `get_session` is the FastAPI dependency every router uses.
"""

from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ceo_platform.config.settings import settings
from ceo_platform.utils.logger import get_logger

logger = get_logger(__name__)


@lru_cache()
def get_engine() -> AsyncEngine:
    """Get the process-wide engine singleton."""
    options = {"echo": settings.DB_ECHO, "pool_pre_ping": True}

    # Pool sizing only applies to server databases; SQLite uses its own pools.
    if settings.DATABASE_URL.startswith("postgresql"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    logger.info(
        "Creating database engine",
        extra={"pool_size": settings.DB_POOL_SIZE, "max_overflow": settings.DB_MAX_OVERFLOW},
    )
    return create_async_engine(settings.DATABASE_URL, **options)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the engine singleton."""
    return async_sessionmaker(get_engine(), expire_on_commit=False)


def async_session_factory() -> AsyncSession:
    """Open a new session (use as `async with async_session_factory() as session`)."""
    return get_session_factory()()


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, rolled back on error."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close every pooled connection. Safe to call when no engine was created."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_session_factory.cache_clear()
        get_engine.cache_clear()
        logger.info("Database engine disposed")
