"""
Cart Store

Holds the customer's in-progress selection before checkout. Lines are
unique by item id and kept in insertion order. Every mutation writes the
whole list back to storage as JSON; the list is read once on construction.

Usage:
    cart = CartStore(MemoryStorage(), cart_id="abc")
    cart.add_item({"id": "m1", "name": "Chicken Biryani", "price": 12.5, "image": ""})
    cart.total   # 12.5
    cart.count   # 1
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

from pak_cuisine.services.cart.storage import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    id: str
    name: str
    price: float
    image: str = ""
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return asdict(self)


def _parse_lines(raw: str) -> list[CartLine]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("cart payload is not a list")
    lines: list[CartLine] = []
    for entry in data:
        line = CartLine(
            id=str(entry["id"]),
            name=str(entry["name"]),
            price=float(entry["price"]),
            image=entry.get("image") or "",
            quantity=int(entry["quantity"]),
        )
        if line.quantity > 0:
            lines.append(line)
    return lines


class CartStore:
    """A single customer's cart, mirrored to key-value storage."""

    def __init__(self, storage: KeyValueStorage, cart_id: str = "default"):
        self.storage = storage
        self.cart_id = cart_id
        self._lines: list[CartLine] = self._load()

    @property
    def key(self) -> str:
        return f"cart:{self.cart_id}"

    def _load(self) -> list[CartLine]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            return _parse_lines(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse cart {self.cart_id}: {e}")
            return []

    def _save(self) -> None:
        self.storage.set(self.key, json.dumps([line.to_dict() for line in self._lines]))

    def _find(self, item_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.id == item_id:
                return line
        return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_item(self, item: Union[dict[str, Any], CartLine]) -> str:
        """
        Add one unit of ``item``.

        An existing line with the same id gets its quantity increased;
        otherwise a new line with quantity one is appended. Returns the
        notice shown to the customer.
        """
        if isinstance(item, CartLine):
            item = item.to_dict()

        existing = self._find(str(item["id"]))
        if existing is not None:
            existing.quantity += 1
            notice = f"Increased quantity of {existing.name}"
        else:
            line = CartLine(
                id=str(item["id"]),
                name=item["name"],
                price=float(item["price"]),
                image=item.get("image") or "",
            )
            self._lines.append(line)
            notice = f"{line.name} added to your cart"

        self._save()
        logger.info(f"Added to cart: {notice}")
        return notice

    def remove_item(self, item_id: str) -> None:
        self._lines = [line for line in self._lines if line.id != item_id]
        self._save()

    def update_quantity(self, item_id: str, delta: int) -> None:
        """Shift a line's quantity by ``delta``; at zero the line is dropped."""
        line = self._find(item_id)
        if line is not None:
            line.quantity = max(0, line.quantity + delta)
        self._lines = [line for line in self._lines if line.quantity > 0]
        self._save()

    def clear(self) -> None:
        self._lines = []
        self._save()

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================

    @property
    def items(self) -> list[CartLine]:
        return [CartLine(**line.to_dict()) for line in self._lines]

    @property
    def total(self) -> float:
        return sum(line.price * line.quantity for line in self._lines)

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def to_dict(self) -> dict:
        return {
            "cart_id": self.cart_id,
            "items": [line.to_dict() for line in self._lines],
            "total": round(self.total, 2),
            "count": self.count,
        }
