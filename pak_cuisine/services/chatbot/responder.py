"""
Rule-Based Chatbot Responder

Maps a free-text message to a canned reply by keyword match, checked in a
fixed priority order:

    1. greeting words
    2. dish keywords / deal words (queries active deals and order history)
    3. halal, menu, location, hours, booking
    4. default reply with three actions

No state is kept between calls. Backend errors propagate to the caller.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.backend import BaseBackend
from pak_cuisine.services.chatbot.catalog import CATALOG_ITEMS, featured_items, hours_from_rows

logger = logging.getLogger(__name__)

GREETING_PATTERN = re.compile(r"\b(hi|hello|hey|salam)\b")

FOOD_KEYWORDS = (
    "burger", "biryani", "karahi", "kebab", "broast", "dessert", "drink",
    "fish", "prawn", "samosa", "tikka", "lassi", "chai", "gulab jamun",
    "kheer", "platter", "feast", "combo",
)
DEAL_WORDS = ("deal", "special", "offer", "best")
MENU_WORDS = ("menu", "food", "eat", "dish")
LOCATION_WORDS = ("location", "address", "where", "find you")
HOURS_WORDS = ("hours", "time", "timing", "open", "close")
BOOKING_WORDS = ("book", "reserve", "reservation", "table")

DEFAULT_ACTIONS = ["View Menu", "Top Deals", "Book a Table"]


@dataclass
class ChatReply:
    content: str
    type: str = "text"
    data: Optional[Any] = None

    def to_dict(self) -> dict:
        return {"content": self.content, "type": self.type, "data": self.data}


def _contains_any(query: str, words: tuple[str, ...]) -> bool:
    return any(word in query for word in words)


def find_bestseller(order_lines: list[dict]) -> Optional[str]:
    """
    Item name with the highest total quantity across order lines.

    Ties go to the name that appears first in ``order_lines``.
    """
    counts: dict[str, int] = {}
    for line in order_lines:
        name = line.get("item_name")
        if not name:
            continue
        counts[name] = counts.get(name, 0) + int(line.get("quantity") or 0)
    if not counts:
        return None
    # max() keeps the first maximal key, and dicts keep first-seen order
    return max(counts, key=counts.get)


def _deal_entry(deal: dict, with_original_price: bool = False) -> dict:
    entry = {
        "id": deal["id"],
        "name": deal["title"],
        "description": deal.get("description"),
        "price": deal["price"],
        "image": deal.get("image_url"),
    }
    if with_original_price:
        entry["original_price"] = deal.get("original_price")
    return entry


async def respond(message: str, backend: BaseBackend) -> ChatReply:
    """Produce the reply for one user message."""
    query = message.lower()

    if GREETING_PATTERN.search(query):
        return ChatReply(
            content=(
                "Assalamu Alaikum! Welcome to Pak Cuisine. I'm your AI assistant. "
                "I can help you find our best **deals**, check the **menu**, or "
                "**book a table** for you. How can I help today?"
            ),
        )

    matched_keyword = next((k for k in FOOD_KEYWORDS if k in query), None)
    wants_deals = _contains_any(query, DEAL_WORDS)

    if matched_keyword or wants_deals:
        deals = await backend.table("deals").select(filters={"is_active": True})
        order_lines = await backend.table("order_items").select()
        bestseller = find_bestseller(order_lines)

        if matched_keyword:
            relevant_deals = [
                d for d in deals
                if matched_keyword in d["title"].lower()
                or matched_keyword in (d.get("description") or "").lower()
            ]
            relevant_menu = [
                item for item in CATALOG_ITEMS
                if matched_keyword in item["name"].lower()
                or matched_keyword in item["category"].lower()
            ]
            if relevant_deals or relevant_menu:
                combined = [_deal_entry(d) for d in relevant_deals] + relevant_menu[:3]
                lead = (
                    "Check out these special deals:" if relevant_deals
                    else "Here is what we have on the menu:"
                )
                content = f"I found some great options for **{matched_keyword}**! {lead}"
                if bestseller:
                    content += f" Our bestseller right now is the **{bestseller}**."
                logger.debug(f"Chatbot: keyword '{matched_keyword}' matched {len(combined)} entries")
                return ChatReply(content=content, type="menu", data=combined[:4])

        if wants_deals:
            display_deals = [_deal_entry(d, with_original_price=True) for d in deals[:3]]
            content = "We have some amazing **deals** and specials today!"
            if bestseller:
                content = (
                    f"Our absolute bestseller right now is the **{bestseller}**! "
                    f"But you should also check out these limited-time **deals**:"
                )
            return ChatReply(
                content=content,
                type="menu",
                data=display_deals if display_deals else featured_items(),
            )

    if "halal" in query:
        return ChatReply(
            content=(
                "Yes, 100%! All our meat is halal certified and we source only "
                "the highest quality ingredients."
            ),
        )

    if _contains_any(query, MENU_WORDS):
        return ChatReply(
            content=(
                "Of course! We serve authentic Pakistani flavors. Here are some "
                "popular dishes. What are you in the mood for?"
            ),
            type="menu",
            data=featured_items(4),
        )

    if _contains_any(query, LOCATION_WORDS):
        address = get_settings().restaurant_address
        return ChatReply(
            content=f"Visit us in the heart of the city:\n\n{address}\n\nWe'd love to host you!",
            type="actions",
            data=["Get Directions", "Book a Table"],
        )

    if _contains_any(query, HOURS_WORDS):
        rows = await backend.table("opening_hours").select()
        hours = "\n".join(f"{h['day']}: {h['hours']}" for h in hours_from_rows(rows))
        return ChatReply(content=f"Our doors are open at these times:\n\n{hours}\n\nSee you soon!")

    if _contains_any(query, BOOKING_WORDS):
        return ChatReply(
            content="I'd be happy to help! You can book your table online in just a few seconds.",
            type="actions",
            data=["Book a Table"],
        )

    return ChatReply(
        content=(
            "I'm not sure about that, but I can show you our **Menu**, latest "
            "**Deals**, or help you **Book a Table**!"
        ),
        type="actions",
        data=list(DEFAULT_ACTIONS),
    )
