"""
Payment Service Factory

Provides a single entry point for obtaining a payment service instance.

Usage:
    from pak_cuisine.services.payment import get_payment_service

    payment_service = get_payment_service()
    result = await payment_service.create_payment_intent(25.0, receipt_email="a@b.co")

Environment Switching:
    - ENV_MODE=development → MockPaymentService (no API calls)
    - ENV_MODE=staging → StripePaymentService (test keys)
    - ENV_MODE=production → StripePaymentService (live keys)
"""

import logging
from functools import lru_cache

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.payment.base import BasePaymentService, PaymentResult, to_cents
from pak_cuisine.services.payment.mock import MockPaymentService
from pak_cuisine.services.payment.stripe import StripePaymentService

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_service() -> BasePaymentService:
    """
    Get the configured payment service instance.

    The instance is cached so every caller shares one provider.

    Raises:
        ValueError: If staging/production mode but Stripe key not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Payment Service: Using MockPaymentService (development mode)")
        return MockPaymentService(min_latency=0.2, max_latency=0.8)

    logger.info(
        f"Payment Service: Using StripePaymentService "
        f"({settings.env_mode.value} mode)"
    )
    return StripePaymentService()


def reset_payment_service() -> None:
    """
    Clear the cached payment service instance.

    The next call to get_payment_service() will create a new instance.
    """
    get_payment_service.cache_clear()
    logger.debug("Payment service cache cleared")


__all__ = [
    "get_payment_service",
    "reset_payment_service",
    "to_cents",
    "BasePaymentService",
    "PaymentResult",
    "MockPaymentService",
    "StripePaymentService",
]
