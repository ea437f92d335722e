"""
SendGrid Email Channel

Production fallback used when operator SMTP is not configured or fails.
"""

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, ReplyTo

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.notifications.base import (
    BaseEmailChannel,
    EmailMessage,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class SendGridEmailChannel(BaseEmailChannel):
    """Transactional email via the SendGrid API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        settings = get_settings()
        api_key = api_key or settings.sendgrid_api_key

        if api_key:
            self.client = SendGridAPIClient(api_key)
        else:
            self.client = None
            logger.warning("SendGrid credentials not configured")
        self.from_email = from_email or settings.sendgrid_from_email

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    async def send(self, message: EmailMessage) -> NotificationResult:
        if not self.client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid",
            )

        try:
            mail = Mail(
                from_email=self.from_email,
                to_emails=message.to_email,
                subject=message.subject,
                html_content=message.html,
                plain_text_content=message.text,
            )
            if message.reply_to:
                mail.reply_to = ReplyTo(message.reply_to)

            response = self.client.send(mail)

            logger.info(f"Email sent to {message.to_email}: {response.status_code}")

            success = response.status_code in [200, 201, 202]
            return NotificationResult(
                success=success,
                message_id=response.headers.get("X-Message-Id"),
                error_message=None if success else f"SendGrid status {response.status_code}",
                provider="sendgrid",
            )

        except Exception as e:
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid",
            )

    async def health_check(self) -> bool:
        return self.client is not None
