"""
Mock Email Channel

Simulates email sending for development and tests.
No actual messages are sent - they are logged and kept in ``sent``.
"""

import asyncio
import logging
import random
import uuid

from pak_cuisine.services.notifications.base import (
    BaseEmailChannel,
    EmailMessage,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class MockEmailChannel(BaseEmailChannel):
    """Mock channel for development."""

    def __init__(self, failure_rate: float = 0.0, latency: float = 0.0, name: str = "mock"):
        self.failure_rate = failure_rate
        self.latency = latency
        self.name = name
        self.sent: list[EmailMessage] = []
        logger.info(f"MockEmailChannel initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return self.name

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send(self, message: EmailMessage) -> NotificationResult:
        if self.latency:
            await asyncio.sleep(self.latency)

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {message.to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider=self.name,
            )

        self.sent.append(message)
        message_id = f"mock_email_{uuid.uuid4().hex[:12]}"

        logger.info(f"MOCK EMAIL sent to {message.to_email}: {message.subject}")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider=self.name,
        )

    async def health_check(self) -> bool:
        return True
