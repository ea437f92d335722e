"""
Backend Abstract Base Classes

Defines the table-scoped query interface every data operation goes through:
insert / select / update / delete / upsert with equality filters, ordering,
limits and counts. Rows are plain dicts keyed by column name.

Design Pattern: Repository
    - MemoryBackend keeps rows in process (development, tests)
    - SqlBackend maps the same calls onto SQLAlchemy models (production)
    - Inserts into watched tables are published to the realtime broker
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pak_cuisine.models import TABLES

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = dict[str, Any]


class BackendError(Exception):
    """A backend call failed (constraint violation, unknown column, I/O)."""


class DuplicateKeyError(BackendError):
    """An insert or update collided with a unique key."""


class UnknownTableError(BackendError):
    """The requested table is not part of the schema."""


class BaseRepository(ABC):
    """
    Query surface for a single table.

    Filters are equality matches; a list, tuple or set value matches any of
    its members. ``order_by`` names one column.
    """

    def __init__(self, table: str, broker: Optional[Any] = None):
        if table not in TABLES:
            raise UnknownTableError(f"Unknown table: {table}")
        self.table = table
        self.model = TABLES[table]
        self._broker = broker

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.model.__table__.columns]

    def _check_columns(self, values: Row) -> None:
        unknown = set(values) - set(self.column_names)
        if unknown:
            raise BackendError(
                f"Unknown column(s) for {self.table}: {', '.join(sorted(unknown))}"
            )

    async def _published(self, row: Row) -> Row:
        if self._broker is not None:
            await self._broker.publish(self.table, row)
        return row

    @abstractmethod
    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        """Return matching rows."""
        pass

    @abstractmethod
    async def get(self, row_id: str) -> Optional[Row]:
        """Return one row by primary key, or None."""
        pass

    @abstractmethod
    async def insert(self, values: Row) -> Row:
        """Insert one row and return it with generated columns filled in."""
        pass

    @abstractmethod
    async def insert_many(self, rows: list[Row]) -> list[Row]:
        """Insert several rows in one call."""
        pass

    @abstractmethod
    async def update(self, row_id: str, values: Row) -> Optional[Row]:
        """Update one row by primary key; None when it does not exist."""
        pass

    @abstractmethod
    async def delete(self, row_id: str) -> bool:
        """Delete one row by primary key; False when it did not exist."""
        pass

    @abstractmethod
    async def count(self, filters: Optional[Filters] = None) -> int:
        """Count matching rows."""
        pass

    async def find_one(self, **filters: Any) -> Optional[Row]:
        rows = await self.select(filters=filters, limit=1)
        return rows[0] if rows else None

    async def upsert(self, values: Row, on_conflict: str) -> Row:
        """Insert, or update the row whose ``on_conflict`` column matches."""
        existing = await self.find_one(**{on_conflict: values[on_conflict]})
        if existing is None:
            return await self.insert(values)
        changes = {k: v for k, v in values.items() if k != "id"}
        return await self.update(existing["id"], changes)


class BaseBackend(ABC):
    """A set of repositories sharing one store."""

    def __init__(self, broker: Optional[Any] = None):
        self.broker = broker
        self._repositories: dict[str, BaseRepository] = {}

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name."""
        pass

    @abstractmethod
    def _make_repository(self, table: str) -> BaseRepository:
        pass

    def table(self, name: str) -> BaseRepository:
        """Return the repository for ``name``."""
        if name not in self._repositories:
            self._repositories[name] = self._make_repository(name)
        return self._repositories[name]

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify the store is reachable."""
        pass
