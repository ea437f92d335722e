"""
Admin Panels

Usage:
    from pak_cuisine.services.admin import build_panels

    panels = build_panels(backend)
    await panels["menu"].create({"name": "Chicken Karahi", "price": 16.99})
"""

from pak_cuisine.services.admin.dashboard import dashboard_summary
from pak_cuisine.services.admin.orders import MANUAL_EMAIL_TEMPLATES, OrdersPanel
from pak_cuisine.services.admin.panels import (
    AdminPanel,
    BlogPanel,
    ContactsPanel,
    DealsPanel,
    GalleryPanel,
    PanelNotFoundError,
    PanelConfig,
    PanelValidationError,
    ReservationsPanel,
)
from pak_cuisine.services.admin.settings import (
    PUBLIC_SETTING_KEYS,
    SETTING_KEYS,
    SiteSettingsService,
)
from pak_cuisine.services.backend import BaseBackend

PANEL_CONFIGS = {
    "categories": (AdminPanel, PanelConfig("categories", "menu_categories", ("name",), "display_order")),
    "menu": (AdminPanel, PanelConfig("menu", "menu_items", ("name", "price"), "display_order", positive=("price",))),
    "deals": (DealsPanel, PanelConfig("deals", "deals", ("title", "price"), "created_at", descending=True)),
    "gallery": (GalleryPanel, PanelConfig("gallery", "gallery_images", ("image_url",), "display_order")),
    "blog": (BlogPanel, PanelConfig("blog", "blog_posts", ("title", "slug", "content"), "created_at", descending=True)),
    "testimonials": (
        AdminPanel,
        PanelConfig("testimonials", "testimonials", ("customer_name", "review_text"), "created_at", descending=True),
    ),
    "reservations": (
        ReservationsPanel,
        PanelConfig("reservations", "reservations", ("guest_name", "guest_email"), "created_at", descending=True),
    ),
    "orders": (
        OrdersPanel,
        PanelConfig("orders", "orders", ("customer_name", "customer_phone"), "created_at", descending=True),
    ),
    "contacts": (
        ContactsPanel,
        PanelConfig("contacts", "contact_submissions", ("name", "email", "message"), "created_at", descending=True),
    ),
    "hours": (AdminPanel, PanelConfig("hours", "opening_hours", ("day_of_week",), "day_of_week")),
}


def build_panels(backend: BaseBackend) -> dict[str, AdminPanel]:
    return {name: cls(backend, config) for name, (cls, config) in PANEL_CONFIGS.items()}


__all__ = [
    "build_panels",
    "dashboard_summary",
    "PANEL_CONFIGS",
    "MANUAL_EMAIL_TEMPLATES",
    "PUBLIC_SETTING_KEYS",
    "SETTING_KEYS",
    "AdminPanel",
    "BlogPanel",
    "ContactsPanel",
    "DealsPanel",
    "GalleryPanel",
    "OrdersPanel",
    "PanelNotFoundError",
    "PanelConfig",
    "PanelValidationError",
    "ReservationsPanel",
    "SiteSettingsService",
]
