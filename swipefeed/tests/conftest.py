"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_swipefeed.db")
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest

from swipefeed.core.contracts import Movie
from swipefeed.tests.factories import make_movie


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def scenario_movies() -> list[Movie]:
    """Three-movie catalog: two well-rated dramas and a weak comedy."""
    return [
        make_movie("A", genres=("drama",), rating_avg=8.0, rating_count=2000),
        make_movie("B", genres=("drama",), rating_avg=7.9, rating_count=1800),
        make_movie("C", genres=("comedy",), moods=("fun",), rating_avg=6.0, rating_count=100),
    ]


@pytest.fixture
async def engine(tmp_path):
    """Create test database engine."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from swipefeed.storage import Base

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test_swipefeed.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Create test database session."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
