"""
SQL Backend

Maps the repository calls onto the SQLAlchemy models with one short-lived
AsyncSession per call. Works with PostgreSQL in production and SQLite
(aiosqlite) in tests.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pak_cuisine.services.backend.base import (
    BackendError,
    BaseBackend,
    BaseRepository,
    DuplicateKeyError,
    Filters,
    Row,
)

logger = logging.getLogger(__name__)


def _integrity_error(error: IntegrityError) -> BackendError:
    message = str(error.orig)
    lowered = message.lower()
    if "unique" in lowered or "duplicate" in lowered:
        return DuplicateKeyError(message)
    return BackendError(message)


class SqlRepository(BaseRepository):
    """One table backed by its SQLAlchemy model."""

    def __init__(
        self,
        table: str,
        session_maker: async_sessionmaker[AsyncSession],
        broker: Optional[Any] = None,
    ):
        super().__init__(table, broker)
        self._session_maker = session_maker

    def _to_dict(self, obj: Any) -> Row:
        return {column.name: getattr(obj, column.name) for column in self.model.__table__.columns}

    def _where(self, stmt, filters: Optional[Filters]):
        for key, expected in (filters or {}).items():
            if key not in self.column_names:
                raise BackendError(f"Unknown column for {self.table}: {key}")
            column = getattr(self.model, key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(expected)))
            elif expected is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == expected)
        return stmt

    async def select(
        self,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        stmt = self._where(select(self.model), filters)
        if order_by:
            if order_by not in self.column_names:
                raise BackendError(f"Unknown column for {self.table}: {order_by}")
            column = getattr(self.model, order_by)
            stmt = stmt.order_by(column.desc().nulls_first() if descending else column.asc().nulls_last())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return [self._to_dict(obj) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e

    async def get(self, row_id: str) -> Optional[Row]:
        try:
            async with self._session_maker() as session:
                obj = await session.get(self.model, row_id)
                return self._to_dict(obj) if obj is not None else None
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e

    async def insert(self, values: Row) -> Row:
        return (await self.insert_many([values]))[0]

    async def insert_many(self, rows: list[Row]) -> list[Row]:
        for values in rows:
            self._check_columns(values)

        async with self._session_maker() as session:
            objects = [self.model(**values) for values in rows]
            session.add_all(objects)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _integrity_error(e) from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise BackendError(str(e)) from e
            for obj in objects:
                await session.refresh(obj)
            inserted = [self._to_dict(obj) for obj in objects]

        logger.debug(f"SQL: inserted {len(inserted)} row(s) into {self.table}")
        return [await self._published(row) for row in inserted]

    async def update(self, row_id: str, values: Row) -> Optional[Row]:
        self._check_columns(values)
        async with self._session_maker() as session:
            obj = await session.get(self.model, row_id)
            if obj is None:
                return None
            for key, value in values.items():
                setattr(obj, key, value)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _integrity_error(e) from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise BackendError(str(e)) from e
            await session.refresh(obj)
            return self._to_dict(obj)

    async def delete(self, row_id: str) -> bool:
        async with self._session_maker() as session:
            obj = await session.get(self.model, row_id)
            if obj is None:
                return False
            await session.delete(obj)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise BackendError(str(e)) from e
            return True

    async def count(self, filters: Optional[Filters] = None) -> int:
        stmt = self._where(select(func.count()).select_from(self.model), filters)
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e


class SqlBackend(BaseBackend):
    """Backend over an async SQLAlchemy session factory."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], broker: Optional[Any] = None):
        super().__init__(broker)
        self._session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "sql"

    def _make_repository(self, table: str) -> BaseRepository:
        return SqlRepository(table, self._session_maker, self.broker)

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False
