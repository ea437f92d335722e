"""
SMTP Email Channel

Delivers through the operator's own mail server. The connection settings
come from the request, the ``smtp`` row in site_settings, or the
environment, in that order (resolved by the dispatcher).
"""

import logging
import smtplib
import uuid
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Optional

from pak_cuisine.services.notifications.base import (
    BaseEmailChannel,
    EmailMessage,
    NotificationResult,
)

logger = logging.getLogger(__name__)


def parse_port(value: Any) -> int:
    """Validate an SMTP port; raises ValueError for anything outside 1-65535."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"SMTP port must be a number, got {value!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"SMTP port out of range: {port}")
    return port


@dataclass
class SmtpConfig:
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_email: Optional[str] = None
    from_name: str = "Pak Cuisine"

    @classmethod
    def from_mapping(cls, data: Optional[dict[str, Any]]) -> Optional["SmtpConfig"]:
        """
        Build a config from an operator settings mapping.

        Accepts both ``host``/``user``/``pass`` (admin settings form) and
        ``username``/``password`` spellings. Returns None without a host
        or with an unusable port.
        """
        if not data or not data.get("host"):
            return None
        try:
            port = parse_port(data.get("port") or 587)
        except ValueError as e:
            logger.warning(f"Ignoring SMTP settings for {data['host']}: {e}")
            return None
        username = data.get("username") or data.get("user")
        return cls(
            host=data["host"],
            port=port,
            username=username,
            password=data.get("password") or data.get("pass"),
            use_tls=bool(data.get("use_tls", data.get("secure", True))),
            from_email=data.get("from_email") or username,
            from_name=data.get("from_name") or "Pak Cuisine",
        )


class SmtpEmailChannel(BaseEmailChannel):
    """Send email over SMTP with optional STARTTLS and login."""

    def __init__(self, config: SmtpConfig, timeout: float = 10.0):
        self.config = config
        self.timeout = timeout

    @property
    def provider_name(self) -> str:
        return "smtp"

    def _build(self, message: EmailMessage) -> MIMEMultipart:
        sender = self.config.from_email or self.config.username or ""
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.config.from_name} <{sender}>"
        msg["To"] = message.to_email
        msg["Subject"] = message.subject
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        if message.text:
            msg.attach(MIMEText(message.text, "plain"))
        msg.attach(MIMEText(message.html, "html"))
        return msg

    async def send(self, message: EmailMessage) -> NotificationResult:
        msg = self._build(message)
        sender = self.config.from_email or self.config.username or ""

        try:
            with smtplib.SMTP(self.config.host, self.config.port, timeout=self.timeout) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.username and self.config.password:
                    server.login(self.config.username, self.config.password)
                server.sendmail(sender, [message.to_email], msg.as_string())

            logger.info(f"SMTP email sent to {message.to_email} via {self.config.host}")
            return NotificationResult(
                success=True,
                message_id=f"smtp_{uuid.uuid4().hex[:16]}",
                provider="smtp",
            )

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error ({self.config.host}): {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="smtp",
            )

    async def health_check(self) -> bool:
        try:
            with smtplib.SMTP(self.config.host, self.config.port, timeout=self.timeout) as server:
                server.noop()
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP health check failed: {e}")
            return False
