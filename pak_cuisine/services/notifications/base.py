"""
Email Channel Abstract Base Class

A channel is one way of delivering an email (operator SMTP, SendGrid, mock).
The dispatcher tries channels in rank order until one succeeds.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class EmailMessage:
    """A rendered email ready for delivery."""
    to_email: str
    subject: str
    html: str
    text: Optional[str] = None
    reply_to: Optional[str] = None


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseEmailChannel(ABC):
    """Abstract base class for email channels."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the channel name reported as the delivery ``method``."""
        pass

    @abstractmethod
    async def send(self, message: EmailMessage) -> NotificationResult:
        """Deliver one email. Never raises for delivery failures."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check channel connectivity."""
        pass
