"""
Realtime Insert Feed

In-process publish/subscribe for row inserts. The backend publishes every
insert; only watched tables (orders, reservations) reach subscribers. The
admin websocket turns each event into a toast.

Usage:
    from pak_cuisine.services.realtime import get_broker

    queue = get_broker().subscribe()
    event = await queue.get()
    print(event.message)  # "New order from Ali Khan"
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable

logger = logging.getLogger(__name__)

WATCHED_TABLES = ("orders", "reservations")


@dataclass
class RowEvent:
    table: str
    record: dict
    event: str = "INSERT"

    @property
    def message(self) -> str:
        if self.table == "orders":
            return f"New order from {self.record.get('customer_name') or 'a customer'}"
        if self.table == "reservations":
            return f"New reservation from {self.record.get('guest_name') or 'a guest'}"
        return f"New row in {self.table}"

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "event": self.event,
            "record": self.record,
            "message": self.message,
        }


class RealtimeBroker:
    """Fans insert events out to subscriber queues."""

    def __init__(self, tables: Iterable[str] = WATCHED_TABLES, max_queue_size: int = 100):
        self.tables = frozenset(tables)
        self.max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        logger.debug(f"Realtime: subscriber added ({len(self._subscribers)} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def publish(self, table: str, record: dict[str, Any]) -> None:
        if table not in self.tables:
            return
        event = RowEvent(table=table, record=dict(record))
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow consumer: drop the event for that subscriber only
                logger.warning(f"Realtime: queue full, dropped {table} event")


@lru_cache()
def get_broker() -> RealtimeBroker:
    return RealtimeBroker()


def reset_broker() -> None:
    get_broker.cache_clear()
