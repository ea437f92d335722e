"""
Backend Factory

Single entry point for the table-scoped repository layer.

Usage:
    from pak_cuisine.services.backend import get_backend

    backend = get_backend()
    deals = await backend.table("deals").select(
        filters={"is_active": True}, order_by="created_at", descending=True
    )

Backend Switching:
    - STORAGE_BACKEND=memory → MemoryBackend (rows live in process)
    - STORAGE_BACKEND=sql → SqlBackend (DATABASE_URL)
"""

import logging
from functools import lru_cache

from pak_cuisine.core.config import StorageBackend, get_settings
from pak_cuisine.services.backend.base import (
    BackendError,
    BaseBackend,
    BaseRepository,
    DuplicateKeyError,
    UnknownTableError,
)
from pak_cuisine.services.backend.memory import MemoryBackend
from pak_cuisine.services.realtime import get_broker

logger = logging.getLogger(__name__)


@lru_cache()
def get_backend() -> BaseBackend:
    """Get the configured backend instance (cached)."""
    settings = get_settings()

    if settings.storage_backend == StorageBackend.MEMORY:
        logger.info("Backend: Using MemoryBackend")
        return MemoryBackend(broker=get_broker())

    # Imported lazily so the memory backend never needs a database driver
    from pak_cuisine.database import get_session_maker
    from pak_cuisine.services.backend.sql import SqlBackend

    logger.info("Backend: Using SqlBackend")
    return SqlBackend(get_session_maker(), broker=get_broker())


def reset_backend() -> None:
    """Clear the cached backend; the next call builds a fresh one."""
    get_backend.cache_clear()
    logger.debug("Backend cache cleared")


__all__ = [
    "get_backend",
    "reset_backend",
    "BackendError",
    "BaseBackend",
    "BaseRepository",
    "DuplicateKeyError",
    "MemoryBackend",
    "UnknownTableError",
]
