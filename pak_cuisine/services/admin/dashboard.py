"""
Admin dashboard summary.
"""

from datetime import datetime, timezone
from typing import Any

from pak_cuisine.models import OrderStatus
from pak_cuisine.services.backend import BaseBackend


def _as_utc(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        # SQLite hands back naive timestamps
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def dashboard_summary(backend: BaseBackend) -> dict[str, Any]:
    """Aggregated counts, today's revenue and recent orders."""
    reservations = await backend.table("reservations").count()
    contacts = await backend.table("contact_submissions").count()
    menu_items = await backend.table("menu_items").count()
    total_orders = await backend.table("orders").count()
    pending_orders = await backend.table("orders").count({"order_status": OrderStatus.PENDING.value})
    unread_contacts = await backend.table("contact_submissions").count({"is_read": False})

    orders = await backend.table("orders").select(order_by="created_at", descending=True)
    billable = [o for o in orders if o.get("order_status") != OrderStatus.CANCELLED.value]

    today = datetime.now(timezone.utc).date()
    today_revenue = sum(
        o["total_amount"] for o in billable
        if o.get("created_at") is not None and _as_utc(o["created_at"]).date() == today
    )
    avg_order_value = (
        sum(o["total_amount"] for o in billable) / len(billable) if billable else 0.0
    )

    return {
        "reservations": reservations,
        "contacts": contacts,
        "unread_contacts": unread_contacts,
        "menu_items": menu_items,
        "total_orders": total_orders,
        "pending_orders": pending_orders,
        "today_revenue": round(today_revenue, 2),
        "avg_order_value": round(avg_order_value, 2),
        "recent_orders": [
            {
                "id": o["id"],
                "customer_name": o["customer_name"],
                "total_amount": o["total_amount"],
                "order_status": o.get("order_status"),
                "created_at": o.get("created_at"),
            }
            for o in orders[:10]
        ],
    }
