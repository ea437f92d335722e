"""
Stripe Payment Service Implementation

Production implementation using the official Stripe Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - STRIPE_SECRET_KEY must be set in environment

Security Notes:
    - Never log client secrets
    - Card details never reach this server; the widget talks to Stripe
"""

import logging
from datetime import datetime
from typing import Optional

import stripe

from pak_cuisine.core.config import get_settings
from pak_cuisine.services.payment.base import (
    BasePaymentService,
    PaymentResult,
    to_cents,
)

logger = logging.getLogger(__name__)


class StripePaymentService(BasePaymentService):
    """
    Production Stripe payment service implementation.

    Creates PaymentIntents with automatic payment methods so the hosted
    widget can offer whatever the account has enabled.

    Example:
        >>> service = StripePaymentService()
        >>> result = await service.create_payment_intent(
        ...     amount=25.00,
        ...     receipt_email="customer@example.com"
        ... )
    """

    def __init__(self):
        """
        Initialize Stripe with API key from settings.

        Raises:
            ValueError: If STRIPE_SECRET_KEY is not configured
        """
        settings = get_settings()

        if not settings.stripe_secret_key:
            raise ValueError(
                "Missing STRIPE_SECRET_KEY. "
                "Set it in your .env file or environment variables."
            )

        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = "2022-11-15"  # Pin API version for stability

        self._currency = settings.stripe_currency

        logger.info(
            f"StripePaymentService initialized "
            f"(api_version={stripe.api_version})"
        )

    @property
    def provider_name(self) -> str:
        return "stripe"

    def _convert_from_cents(self, cents: int) -> float:
        return cents / 100.0

    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        receipt_email: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Create a PaymentIntent for client-side confirmation.

        Returns a client_secret that the frontend uses with Stripe.js
        to complete the payment.
        """
        if amount is None or amount <= 0:
            return PaymentResult(
                success=False,
                error_message="Invalid amount",
                error_code="invalid_amount",
            )

        start_time = datetime.now()

        try:
            params = {
                "amount": to_cents(amount),
                "currency": currency or self._currency,
                "automatic_payment_methods": {"enabled": True},
                "metadata": metadata or {},
            }
            if receipt_email:
                params["receipt_email"] = receipt_email

            intent = stripe.PaymentIntent.create(**params)

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.info(f"Stripe: PaymentIntent created - {intent.id} - status={intent.status}")

            return PaymentResult(
                success=True,
                payment_intent_id=intent.id,
                client_secret=intent.client_secret,
                amount=self._convert_from_cents(intent.amount),
                currency=intent.currency,
                response_time_ms=elapsed_ms,
                status=intent.status,
            )

        except stripe.AuthenticationError as e:
            # API key issues
            logger.critical(f"Stripe: Authentication failed - {e}")
            return PaymentResult(
                success=False,
                error_message="Payment service configuration error",
                error_code="authentication_error",
            )

        except stripe.APIConnectionError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Connection error - {e}")
            return PaymentResult(
                success=False,
                error_message="Payment service temporarily unavailable",
                error_code="connection_error",
                response_time_ms=elapsed_ms,
            )

        except stripe.InvalidRequestError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Invalid request - {e}")
            return PaymentResult(
                success=False,
                error_message=e.user_message or str(e),
                error_code="invalid_request",
                response_time_ms=elapsed_ms,
            )

        except stripe.StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Failed to create PaymentIntent - {e}")
            return PaymentResult(
                success=False,
                error_message=e.user_message or "Payment processing error",
                error_code="stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentResult:
        """Fetch an intent so a checkout can confirm it was paid in full."""
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.InvalidRequestError as e:
            logger.warning(f"Stripe: Unknown PaymentIntent {payment_intent_id} - {e}")
            return PaymentResult(
                success=False,
                payment_intent_id=payment_intent_id,
                error_message=e.user_message or str(e),
                error_code="invalid_request",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe: Failed to retrieve PaymentIntent {payment_intent_id} - {e}")
            return PaymentResult(
                success=False,
                payment_intent_id=payment_intent_id,
                error_message=e.user_message or "Payment processing error",
                error_code="stripe_error",
            )

        return PaymentResult(
            success=True,
            payment_intent_id=intent.id,
            amount=self._convert_from_cents(intent.amount),
            currency=intent.currency,
            status=intent.status,
        )

    async def health_check(self) -> bool:
        """Retrieve the account as a lightweight connectivity probe."""
        try:
            stripe.Account.retrieve()
            logger.debug("Stripe: Health check passed")
            return True
        except stripe.StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
