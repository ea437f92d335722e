"""
Notification Service Factory

Returns an EmailDispatcher whose channels depend on ENV_MODE.

    - ENV_MODE=development → MockEmailChannel only (nothing leaves the process)
    - ENV_MODE=staging/production → operator SMTP, then SendGrid
"""

import logging
from functools import lru_cache

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.backend import get_backend
from pak_cuisine.services.notifications.base import (
    BaseEmailChannel,
    EmailMessage,
    NotificationResult,
)
from pak_cuisine.services.notifications.dispatcher import DispatchResult, EmailDispatcher
from pak_cuisine.services.notifications.mock import MockEmailChannel
from pak_cuisine.services.notifications.sendgrid import SendGridEmailChannel
from pak_cuisine.services.notifications.smtp import SmtpConfig, SmtpEmailChannel, parse_port
from pak_cuisine.services.notifications.templates import TEMPLATES, EmailTemplateError

logger = logging.getLogger(__name__)


@lru_cache()
def get_email_dispatcher() -> EmailDispatcher:
    """Get the configured email dispatcher."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Notification Service: Using MockEmailChannel (development mode)")
        return EmailDispatcher(get_backend(), [MockEmailChannel()], use_smtp=False)

    logger.info(f"Notification Service: Using SMTP → SendGrid ({settings.env_mode.value} mode)")
    return EmailDispatcher(get_backend(), [SendGridEmailChannel()], use_smtp=True)


def reset_email_dispatcher() -> None:
    """Clear the cached dispatcher instance."""
    get_email_dispatcher.cache_clear()


__all__ = [
    "get_email_dispatcher",
    "reset_email_dispatcher",
    "TEMPLATES",
    "BaseEmailChannel",
    "DispatchResult",
    "EmailDispatcher",
    "EmailMessage",
    "EmailTemplateError",
    "MockEmailChannel",
    "NotificationResult",
    "SendGridEmailChannel",
    "SmtpConfig",
    "parse_port",
    "SmtpEmailChannel",
]
