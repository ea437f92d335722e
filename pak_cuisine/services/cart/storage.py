"""
Cart Key-Value Storage

The cart serializes itself to a string under one key. Where that string
lives is injected:

    - MemoryStorage: plain dict (tests, single-process development)
    - JsonFileStorage: one file per key under a directory
    - RedisStorage: one Redis key per cart (production)
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Minimal get/set surface the cart persists through."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class MemoryStorage(KeyValueStorage):

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class RedisStorage(KeyValueStorage):
    """Carts in Redis, expiring after ``ttl_seconds`` of inactivity."""

    def __init__(self, client: redis.Redis, ttl_seconds: Optional[int] = 7 * 24 * 3600):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisStorage":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self.client.set(key, value, ex=self.ttl_seconds)

    def delete(self, key: str) -> None:
        self.client.delete(key)
