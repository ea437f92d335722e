"""
Admin CRUD Panels

One generic list/create/update/delete surface per table. Validation is
"required field non-empty" (plus price > 0 where configured); there are no
cross-field rules. Concurrent edits are last-write-wins.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pak_cuisine.services.backend import BaseBackend, BaseRepository

logger = logging.getLogger(__name__)


class PanelValidationError(ValueError):
    """Required fields are missing or blank."""

    def __init__(self, fields: list[str], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message or f"Please fill in all required fields: {', '.join(fields)}")


class PanelNotFoundError(LookupError):
    """No row with the requested id."""


@dataclass(frozen=True)
class PanelConfig:
    name: str
    table: str
    required: tuple[str, ...]
    sort_by: str
    descending: bool = False
    positive: tuple[str, ...] = ()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AdminPanel:
    """Generic CRUD over one table."""

    def __init__(self, backend: BaseBackend, config: PanelConfig):
        self.backend = backend
        self.config = config

    @property
    def repository(self) -> BaseRepository:
        return self.backend.table(self.config.table)

    def validate(self, values: dict[str, Any], partial: bool = False) -> None:
        """
        Check required fields.

        With ``partial`` (updates) only required fields present in
        ``values`` are checked.
        """
        unknown = sorted(set(values) - set(self.repository.column_names))
        if unknown:
            raise PanelValidationError(unknown, f"Unknown field(s): {', '.join(unknown)}")

        missing = [
            name for name in self.config.required
            if (name in values or not partial) and _is_blank(values.get(name))
        ]
        if missing:
            raise PanelValidationError(missing)

        for name in self.config.positive:
            if name not in values:
                continue
            try:
                number = float(values[name])
            except (TypeError, ValueError):
                raise PanelValidationError([name], f"{name} must be a number")
            if number <= 0:
                raise PanelValidationError([name], f"{name} must be greater than 0")

    async def list(self, filters: Optional[dict[str, Any]] = None) -> list[dict]:
        return await self.repository.select(
            filters=filters,
            order_by=self.config.sort_by,
            descending=self.config.descending,
        )

    async def get(self, row_id: str) -> dict:
        row = await self.repository.get(row_id)
        if row is None:
            raise PanelNotFoundError(f"{self.config.name}: {row_id} not found")
        return row

    async def create(self, values: dict[str, Any]) -> dict:
        self.validate(values)
        row = await self.repository.insert(values)
        logger.info(f"Admin {self.config.name}: created {row['id']}")
        return row

    async def update(self, row_id: str, values: dict[str, Any]) -> dict:
        values = {k: v for k, v in values.items() if k != "id"}
        self.validate(values, partial=True)
        row = await self.repository.update(row_id, values)
        if row is None:
            raise PanelNotFoundError(f"{self.config.name}: {row_id} not found")
        logger.info(f"Admin {self.config.name}: updated {row_id}")
        return row

    async def save(self, values: dict[str, Any], row_id: Optional[str] = None) -> dict:
        """Insert when ``row_id`` is None (empty form), otherwise update."""
        if row_id is None:
            return await self.create(values)
        return await self.update(row_id, values)

    async def delete(self, row_id: str) -> None:
        if not await self.repository.delete(row_id):
            raise PanelNotFoundError(f"{self.config.name}: {row_id} not found")
        logger.info(f"Admin {self.config.name}: deleted {row_id}")

    async def _flip(self, row_id: str, column: str) -> dict:
        row = await self.get(row_id)
        return await self.update(row_id, {column: not row.get(column)})


class GalleryPanel(AdminPanel):

    async def toggle_visibility(self, row_id: str) -> dict:
        return await self._flip(row_id, "is_visible")


class BlogPanel(AdminPanel):

    async def toggle_publish(self, row_id: str) -> dict:
        row = await self.get(row_id)
        publishing = not row.get("is_published")
        changes: dict[str, Any] = {"is_published": publishing}
        if publishing:
            changes["published_at"] = datetime.now(timezone.utc)
        return await self.update(row_id, changes)


class ContactsPanel(AdminPanel):

    async def mark_read(self, row_id: str) -> dict:
        return await self.update(row_id, {"is_read": True})


class ReservationsPanel(AdminPanel):
    STATUSES = ("pending", "confirmed", "cancelled", "completed")

    async def update_status(self, row_id: str, status: str) -> dict:
        if status not in self.STATUSES:
            raise PanelValidationError(["status"], f"Invalid status. Options: {list(self.STATUSES)}")
        return await self.update(row_id, {"status": status})


class DealsPanel(AdminPanel):

    async def broadcast_requests(self, row_id: str) -> list[dict]:
        """
        One ``deal_broadcast`` email request per subscriber.

        Returns an empty list when there are no subscribers yet.
        """
        deal = await self.get(row_id)
        subscribers = await self.backend.table("subscribers").select(order_by="created_at")
        return [
            {
                "template": "deal_broadcast",
                "kind": "deal",
                "payload": {
                    "id": deal["id"],
                    "email": subscriber["email"],
                    "title": deal["title"],
                    "description": deal.get("description"),
                    "price": deal["price"],
                    "original_price": deal.get("original_price"),
                    "image_url": deal.get("image_url"),
                },
                "items": None,
            }
            for subscriber in subscribers
        ]
