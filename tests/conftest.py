"""
Shared test fixtures.

Every test gets its own SQLite database file, created from the model
metadata.
"""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from weather_collector.database import Base
import weather_collector.models  # noqa: F401 - registers all tables


@pytest.fixture
async def engine(tmp_path):
    """Engine on a fresh database with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'collector.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def bare_engine(tmp_path):
    """Engine on a database without any tables, to provoke storage faults."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}", echo=False)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
