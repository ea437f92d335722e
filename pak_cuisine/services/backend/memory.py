"""
In-Memory Backend

Keeps every table as an ordered dict of rows inside the process. Used in
development (STORAGE_BACKEND=memory) and throughout the test suite.

Column defaults, NOT NULL and UNIQUE constraints are read from the
SQLAlchemy models so rows look the same as they would coming out of the
database.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime

from pak_cuisine.services.backend.base import (
    BackendError,
    BaseBackend,
    BaseRepository,
    DuplicateKeyError,
    Filters,
    Row,
)

logger = logging.getLogger(__name__)


def _matches(row: Row, filters: Optional[Filters]) -> bool:
    for key, expected in (filters or {}).items():
        value = row.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class MemoryRepository(BaseRepository):
    """Rows for one table, kept in insertion order."""

    def __init__(self, table: str, broker: Optional[Any] = None):
        super().__init__(table, broker)
        self._rows: dict[str, Row] = {}

    def _apply_defaults(self, values: Row) -> Row:
        row = dict(values)
        now = datetime.now(timezone.utc)
        for column in self.model.__table__.columns:
            if row.get(column.name) is not None:
                continue
            if column.name in row and column.nullable:
                continue
            if column.default is not None:
                if column.default.is_callable:
                    row[column.name] = column.default.arg(None)
                elif column.default.is_scalar:
                    row[column.name] = copy.deepcopy(column.default.arg)
            elif column.server_default is not None and isinstance(column.type, DateTime):
                row[column.name] = now
            else:
                row.setdefault(column.name, None)
        return row

    def _check_constraints(self, row: Row, exclude_id: Optional[str] = None) -> None:
        for column in self.model.__table__.columns:
            value = row.get(column.name)
            if value is None and not column.nullable:
                raise BackendError(
                    f'null value in column "{column.name}" of relation '
                    f'"{self.table}" violates not-null constraint'
                )
            if value is None or not (column.unique or column.primary_key):
                continue
            for other_id, other in self._rows.items():
                if other_id != exclude_id and other.get(column.name) == value:
                    raise DuplicateKeyError(
                        f'duplicate key value violates unique constraint '
                        f'"{self.table}_{column.name}_key"'
                    )

    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        rows = [row for row in self._rows.values() if _matches(row, filters)]
        if order_by:
            if order_by not in self.column_names:
                raise BackendError(f"Unknown column for {self.table}: {order_by}")
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            # NULLS LAST ascending, NULLS FIRST descending (postgres ordering)
            rows = missing + present if descending else present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def get(self, row_id: str) -> Optional[Row]:
        row = self._rows.get(row_id)
        return copy.deepcopy(row) if row is not None else None

    async def insert(self, values: Row) -> Row:
        self._check_columns(values)
        row = self._apply_defaults(values)
        self._check_constraints(row)
        self._rows[row["id"]] = row
        logger.debug(f"Memory: inserted {self.table}/{row['id']}")
        return await self._published(copy.deepcopy(row))

    async def insert_many(self, rows: list[Row]) -> list[Row]:
        prepared = []
        for values in rows:
            self._check_columns(values)
            prepared.append(self._apply_defaults(values))
        # All-or-nothing, like a single multi-row INSERT
        staged = dict(self._rows)
        try:
            for row in prepared:
                self._check_constraints(row)
                self._rows[row["id"]] = row
        except BackendError:
            self._rows = staged
            raise
        return [await self._published(copy.deepcopy(row)) for row in prepared]

    async def update(self, row_id: str, values: Row) -> Optional[Row]:
        self._check_columns(values)
        current = self._rows.get(row_id)
        if current is None:
            return None
        updated = {**current, **values}
        if "updated_at" in self.column_names:
            updated["updated_at"] = datetime.now(timezone.utc)
        self._check_constraints(updated, exclude_id=row_id)
        self._rows[row_id] = updated
        return copy.deepcopy(updated)

    async def delete(self, row_id: str) -> bool:
        return self._rows.pop(row_id, None) is not None

    async def count(self, filters: Optional[Filters] = None) -> int:
        return sum(1 for row in self._rows.values() if _matches(row, filters))


class MemoryBackend(BaseBackend):
    """Process-local backend."""

    @property
    def provider_name(self) -> str:
        return "memory"

    def _make_repository(self, table: str) -> BaseRepository:
        return MemoryRepository(table, self.broker)

    async def health_check(self) -> bool:
        return True
