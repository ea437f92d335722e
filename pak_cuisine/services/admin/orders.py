"""
Orders Panel

Adds nested order lines, status changes, the active/history split and the
manual customer emails on top of the generic panel.
"""

import logging
from typing import Optional

from pak_cuisine.models import ACTIVE_ORDER_STATUSES, HISTORY_ORDER_STATUSES, OrderStatus
from pak_cuisine.services.admin.panels import AdminPanel, PanelValidationError

logger = logging.getLogger(__name__)

MANUAL_EMAIL_TEMPLATES = ("customer_confirmation", "customer_thanks")


def _matches_search(order: dict, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.strip().lower()
    return needle in (order.get("customer_name") or "").lower() or order["id"].lower().startswith(needle)


class OrdersPanel(AdminPanel):

    async def list_with_items(self, filters: Optional[dict] = None) -> list[dict]:
        orders = await self.list(filters)
        if not orders:
            return []
        lines = await self.backend.table("order_items").select(
            filters={"order_id": [order["id"] for order in orders]}
        )
        by_order: dict[str, list[dict]] = {}
        for line in lines:
            by_order.setdefault(line["order_id"], []).append(line)
        for order in orders:
            order["order_items"] = by_order.get(order["id"], [])
        return orders

    async def get_with_items(self, order_id: str) -> dict:
        order = await self.get(order_id)
        order["order_items"] = await self.backend.table("order_items").select(
            filters={"order_id": order_id}
        )
        return order

    async def update_status(self, order_id: str, status: str) -> dict:
        try:
            status = OrderStatus(status).value
        except ValueError:
            raise PanelValidationError(
                ["order_status"],
                f"Invalid status. Options: {[s.value for s in OrderStatus]}",
            )
        order = await self.update(order_id, {"order_status": status})
        logger.info(f"Order {order_id} status → {status}")
        return order

    async def split(self, search: Optional[str] = None) -> dict[str, list[dict]]:
        """Active (pending → out_for_delivery) and history (delivered, cancelled)."""
        orders = [o for o in await self.list_with_items() if _matches_search(o, search)]
        active = {s.value for s in ACTIVE_ORDER_STATUSES}
        history = {s.value for s in HISTORY_ORDER_STATUSES}
        return {
            "active": [o for o in orders if o.get("order_status") in active],
            "history": [o for o in orders if o.get("order_status") in history],
        }

    async def customer_email_request(self, order_id: str, template: str) -> dict:
        """The send-email request for a manual customer email about one order."""
        if template not in MANUAL_EMAIL_TEMPLATES:
            raise PanelValidationError(
                ["template"], f"Invalid template. Options: {list(MANUAL_EMAIL_TEMPLATES)}"
            )
        order = await self.get_with_items(order_id)
        items = order.pop("order_items")
        return {
            "template": template,
            "kind": "order",
            "payload": order,
            "items": [{"name": i["item_name"], "quantity": i["quantity"]} for i in items],
        }
