"""
Database Connection Module
Handles the relational store using SQLAlchemy's async engine.

The engine is created lazily so that the in-memory backend (development,
tests) never needs a database driver at import time.
"""

from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pak_cuisine.core.config import get_settings


# Base class for all our models
class Base(DeclarativeBase):
    pass


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create the async engine from settings (once)."""
    settings = get_settings()
    options = {"echo": settings.database_echo}
    if settings.database_url.startswith("postgresql"):
        options.update(pool_size=5, max_overflow=10)
    return create_async_engine(settings.database_url, **options)


@lru_cache()
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the configured engine."""
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,  # Objects remain accessible after commit
    )


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables in database.
    Called once at application startup when the SQL backend is active.
    """
    # Register every model on Base.metadata
    import pak_cuisine.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
