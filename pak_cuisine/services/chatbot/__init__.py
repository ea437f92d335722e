"""
Chatbot

Usage:
    from pak_cuisine.services.chatbot import respond

    reply = await respond("any biryani deals?", backend)
    reply.to_dict()  # {"content": ..., "type": "menu", "data": [...]}
"""

from pak_cuisine.services.chatbot.responder import (
    DEFAULT_ACTIONS,
    ChatReply,
    find_bestseller,
    respond,
)

__all__ = ["respond", "find_bestseller", "ChatReply", "DEFAULT_ACTIONS"]
