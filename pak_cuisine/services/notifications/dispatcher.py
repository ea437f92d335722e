"""
Email Dispatcher

Tries a ranked list of email channels in order and reports which one
delivered:

    1. operator SMTP (request config → site_settings "smtp" row → environment)
    2. fallback channels (SendGrid in production, mock in development)

There is no retry or backoff beyond moving on to the next channel.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.backend import BackendError, BaseBackend
from pak_cuisine.services.notifications.base import (
    BaseEmailChannel,
    EmailMessage,
    NotificationResult,
)
from pak_cuisine.services.notifications.smtp import SmtpConfig, SmtpEmailChannel
from pak_cuisine.services.notifications.templates import render_email

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    success: bool
    method: Optional[str] = None
    recipient: Optional[str] = None
    error_message: Optional[str] = None
    attempts: list[NotificationResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"success": self.success, "method": self.method, "recipient": self.recipient}
        if not self.success:
            data["error"] = self.error_message
        return data


class EmailDispatcher:
    """
    Ranked-channel email delivery.

    Args:
        backend: Where the operator "smtp" setting is read from (optional)
        fallback_channels: Channels tried after SMTP, in order
        use_smtp: Whether SMTP is attempted at all
        smtp_channel_factory: Builds the SMTP channel from a resolved config
    """

    def __init__(
        self,
        backend: Optional[BaseBackend],
        fallback_channels: list[BaseEmailChannel],
        use_smtp: bool = True,
        smtp_channel_factory: Callable[[SmtpConfig], BaseEmailChannel] = SmtpEmailChannel,
        admin_email: Optional[str] = None,
    ):
        self.backend = backend
        self.fallback_channels = list(fallback_channels)
        self.use_smtp = use_smtp
        self.smtp_channel_factory = smtp_channel_factory
        self.admin_email = admin_email

    async def resolve_smtp_config(self, override: Optional[dict[str, Any]] = None) -> Optional[SmtpConfig]:
        config = SmtpConfig.from_mapping(override)
        if config:
            return config

        if self.backend is not None:
            try:
                row = await self.backend.table("site_settings").find_one(key="smtp")
            except BackendError as e:
                logger.warning(f"Could not read smtp setting, using environment: {e}")
                row = None
            config = SmtpConfig.from_mapping(row["value"] if row else None)
            if config:
                return config

        settings = get_settings()
        return SmtpConfig.from_mapping({
            "host": settings.smtp_host,
            "port": settings.smtp_port,
            "username": settings.smtp_username,
            "password": settings.smtp_password,
            "use_tls": settings.smtp_use_tls,
            "from_email": settings.smtp_from_email,
        })

    async def channels(self, smtp_override: Optional[dict[str, Any]] = None) -> list[BaseEmailChannel]:
        ranked: list[BaseEmailChannel] = []
        if self.use_smtp:
            config = await self.resolve_smtp_config(smtp_override)
            if config:
                ranked.append(self.smtp_channel_factory(config))
        ranked.extend(self.fallback_channels)
        return ranked

    async def send(
        self,
        message: EmailMessage,
        smtp_override: Optional[dict[str, Any]] = None,
    ) -> DispatchResult:
        attempts: list[NotificationResult] = []

        for channel in await self.channels(smtp_override):
            result = await channel.send(message)
            attempts.append(result)
            if result.success:
                logger.info(f"Email to {message.to_email} delivered via {channel.provider_name}")
                return DispatchResult(
                    success=True,
                    method=channel.provider_name,
                    recipient=message.to_email,
                    attempts=attempts,
                )
            logger.warning(
                f"Email channel {channel.provider_name} failed for {message.to_email}: "
                f"{result.error_message}"
            )

        error = "; ".join(f"{a.provider}: {a.error_message}" for a in attempts)
        return DispatchResult(
            success=False,
            recipient=message.to_email,
            error_message=error or "No email channel configured",
            attempts=attempts,
        )

    async def dispatch(
        self,
        template: str,
        kind: Optional[str],
        payload: Optional[dict],
        items: Optional[list[dict]] = None,
        config: Optional[dict[str, Any]] = None,
    ) -> DispatchResult:
        """
        Render ``template`` and deliver it.

        Raises:
            EmailTemplateError: missing payload, unknown template, no recipient
        """
        rendered = render_email(template, kind, payload, items, admin_email=self.admin_email)
        return await self.send(rendered.message, smtp_override=config)
