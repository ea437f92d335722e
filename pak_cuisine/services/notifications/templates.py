"""
Email Templates

Renders the transactional emails with Jinja2 (templates/email/*.html) and
decides who receives them:

    - admin_alert → the restaurant admin address
    - every other template → payload customer_email | guest_email | email
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from jinja2 import Environment, PackageLoader, select_autoescape

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.notifications.base import EmailMessage

logger = logging.getLogger(__name__)

TEMPLATES = (
    "admin_alert",
    "customer_confirmation",
    "customer_thanks",
    "subscription_confirmation",
    "deal_broadcast",
)

_env = Environment(
    loader=PackageLoader("pak_cuisine", "templates"),
    autoescape=select_autoescape(["html"]),
)


class EmailTemplateError(ValueError):
    """The request cannot be turned into an email."""


@dataclass
class RenderedEmail:
    template: str
    message: EmailMessage

    @property
    def recipient(self) -> str:
        return self.message.to_email


def short_reference(value: Any) -> str:
    """Order/reservation reference shown to people: first 8 chars of string ids."""
    if value is None or value == "":
        return "NEW"
    if isinstance(value, str):
        return value[:8]
    return str(value)


def format_items(items: Optional[list[dict]]) -> str:
    if not items or not isinstance(items, list):
        return "Check Admin Dashboard"
    return ", ".join(
        f"{item.get('quantity', 1)}x {item.get('name') or item.get('item_name')}"
        for item in items
    )


def whatsapp_link(number: str, kind: str, reference: str, items_list: str) -> str:
    label = "Order" if kind == "order" else "Reservation"
    text = f"Confirming my {label} (#{reference})\nItems: {items_list}"
    return f"https://wa.me/{number}?text={quote(text)}"


def customer_email_of(payload: dict) -> Optional[str]:
    return payload.get("customer_email") or payload.get("guest_email") or payload.get("email")


def customer_name_of(payload: dict) -> str:
    return payload.get("customer_name") or payload.get("guest_name") or payload.get("name") or "Customer"


def render_email(
    template: str,
    kind: Optional[str],
    payload: Optional[dict],
    items: Optional[list[dict]] = None,
    admin_email: Optional[str] = None,
) -> RenderedEmail:
    """
    Build the email for ``template``.

    Raises:
        EmailTemplateError: payload missing, unknown template, or no recipient
    """
    if not payload:
        raise EmailTemplateError("Payload is missing")
    if template not in TEMPLATES:
        raise EmailTemplateError("Invalid template specified")

    settings = get_settings()
    kind = kind or "order"
    reference = short_reference(payload.get("id"))
    items_list = format_items(items)
    customer_email = customer_email_of(payload)
    customer_name = customer_name_of(payload)

    if template == "admin_alert":
        recipient = admin_email or settings.admin_email
    else:
        recipient = customer_email
    if not recipient:
        raise EmailTemplateError("No recipient email in payload")

    if template == "deal_broadcast":
        payload = {
            **payload,
            "price": float(payload.get("price") or 0),
            "original_price": float(payload["original_price"]) if payload.get("original_price") else None,
        }

    total = payload.get("total_amount")
    context = {
        "type": kind,
        "payload": payload,
        "reference": reference,
        "items_list": items_list,
        "customer_name": customer_name,
        "customer_email": customer_email or "no-email",
        "total": f"${float(total):.2f}" if total is not None else "N/A",
        "whatsapp_link": whatsapp_link(settings.whatsapp_number, kind, reference, items_list),
        "restaurant_name": settings.restaurant_name,
        "site_url": settings.site_url.rstrip("/"),
    }

    subjects = {
        "admin_alert": f"NEW {kind.upper()} - #{reference}",
        "customer_confirmation": f"Action Required: Confirm your {kind} - #{reference}",
        "customer_thanks": f"Thank you from {settings.restaurant_name}! - #{reference}",
        "subscription_confirmation": f"Welcome to {settings.restaurant_name} Insider Deals!",
        "deal_broadcast": f"{payload.get('title', 'New deal')} - now at {settings.restaurant_name}",
    }
    texts = {
        "admin_alert": (
            f"New {kind} from {customer_name}. Please log in to Admin Dashboard "
            f"to review and send confirmation.\n\nItems: {items_list}"
        ),
        "customer_confirmation": (
            f"Hi {customer_name}, thank you for your {kind}. It is currently pending.\n"
            f"Items: {items_list}\nConfirm via WhatsApp: {context['whatsapp_link']}"
        ),
        "customer_thanks": (
            f"Hi {customer_name}, your {kind} (#{reference}) has been completed. "
            f"We look forward to serving you again soon."
        ),
        "subscription_confirmation": "Thanks for subscribing! You'll be the first to hear about our deals.",
        "deal_broadcast": f"{payload.get('title', '')}: {payload.get('description') or ''}".strip(": "),
    }

    html = _env.get_template(f"email/{template}.html").render(**context)
    message = EmailMessage(
        to_email=recipient,
        subject=subjects[template],
        html=html,
        text=texts[template],
        reply_to=customer_email if template == "admin_alert" else None,
    )
    logger.debug(f"Rendered {template} for {recipient}")
    return RenderedEmail(template=template, message=message)
