"""Async database engine for profile and swipe storage."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from swipefeed.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Declarative base for profile and swipe tables."""


def _resolve_settings(database_url: str | None) -> tuple[str, bool]:
    """Database URL and SQL echo flag.

    DATABASE_URL and LOG_LEVEL from the environment win over the loaded
    config, so tests can point storage elsewhere after import.
    """
    from swipefeed.config import config

    url = database_url or os.getenv("DATABASE_URL") or config.database_url
    level = (os.getenv("LOG_LEVEL") or config.log_level).upper()
    return url, level == "DEBUG"


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Shared engine, created on first use.

    Args:
        database_url: Override for the first call; ignored once created

    Returns:
        AsyncEngine
    """
    global _engine

    if _engine is None:
        url, echo = _resolve_settings(database_url)
        logger.info(f"Opening profile store at {url}")
        _engine = create_async_engine(url, echo=echo, pool_pre_ping=True)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _session_factory


async def init_db() -> None:
    """Create the profile and swipe tables if missing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Profile store tables ready")


async def close_engine() -> None:
    """Dispose the shared engine so the next call starts fresh."""
    global _engine, _session_factory

    if _engine is None:
        return

    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Profile store closed")
