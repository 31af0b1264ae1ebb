"""
Database configuration and session management.

This module contains the SQLAlchemy engine, session configuration,
and database table creation utilities.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from weather_collector.config import settings

# Base class for all database models
Base = declarative_base()


def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    PostgreSQL URLs are rewritten to the asyncpg driver and pooled up to
    DB_POOL_SIZE connections; SQLite keeps SQLAlchemy's default pool.
    """
    url = database_url or settings.SQLALCHEMY_DATABASE_URI
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    options = {"echo": settings.DEBUG}
    if not url.startswith("sqlite"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = 0
        options["pool_pre_ping"] = True

    return create_async_engine(url, **options)


# Create async engine
engine = build_engine()

# Create async session factory
async_session = async_sessionmaker(
    engine,
    expire_on_commit=False,
)


def _configure_models():
    """Import all models so they are registered with Base.metadata."""
    import weather_collector.models  # noqa: F401


async def create_tables(bind: Optional[AsyncEngine] = None):
    """
    Create all database tables.

    Intended for development and tests; production schemas are provisioned
    outside the collector.
    """
    _configure_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: Optional[AsyncEngine] = None):
    """
    Drop all database tables.

    WARNING: This will delete all data. Use with caution.
    """
    _configure_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
