"""
Cart Service Factory

Usage:
    from pak_cuisine.services.cart import get_cart

    cart = get_cart("session-123")
    cart.add_item({"id": "m1", "name": "Seekh Kebab", "price": 9.0})

Storage Switching:
    - CART_STORAGE=memory → MemoryStorage
    - CART_STORAGE=file → JsonFileStorage (CART_FILE_DIRECTORY)
    - CART_STORAGE=redis → RedisStorage (REDIS_URL)
"""

import logging
from functools import lru_cache

from pak_cuisine.core.config import CartStorage, get_settings
from pak_cuisine.services.cart.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    RedisStorage,
)
from pak_cuisine.services.cart.store import CartLine, CartStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_cart_storage() -> KeyValueStorage:
    settings = get_settings()

    if settings.cart_storage == CartStorage.REDIS:
        logger.info("Cart Storage: Using RedisStorage")
        return RedisStorage.from_url(settings.redis_url)
    if settings.cart_storage == CartStorage.FILE:
        logger.info(f"Cart Storage: Using JsonFileStorage ({settings.cart_file_directory})")
        return JsonFileStorage(settings.cart_file_directory)

    logger.info("Cart Storage: Using MemoryStorage")
    return MemoryStorage()


def get_cart(cart_id: str) -> CartStore:
    """Load the cart for ``cart_id`` from the configured storage."""
    return CartStore(get_cart_storage(), cart_id=cart_id)


def reset_cart_storage() -> None:
    get_cart_storage.cache_clear()


__all__ = [
    "get_cart",
    "get_cart_storage",
    "reset_cart_storage",
    "CartLine",
    "CartStore",
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "RedisStorage",
]
