"""
Mock Payment Service Implementation

Simulates Stripe payment-intent creation without making real API calls.
Used in development mode (ENV_MODE=development) and in tests.

Behavior:
    - Simulates response times (configurable, zero in tests)
    - Optionally fails a share of requests (simulates provider errors)
    - Generates Stripe-like IDs and client secrets (pi_xxx_secret_xxx)
"""

import asyncio
import logging
import random
import uuid
from typing import Optional

from pak_cuisine.services.payment.base import BasePaymentService, PaymentResult

logger = logging.getLogger(__name__)


class MockPaymentService(BasePaymentService):
    """
    Mock implementation of the payment service.

    Attributes:
        failure_rate: Probability of a simulated provider error (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        intent_status: Status reported when a created intent is looked up
            (the widget is assumed to have confirmed it)

    Example:
        >>> service = MockPaymentService(failure_rate=0.0)
        >>> result = await service.create_payment_intent(25.0)
        >>> result.client_secret.startswith("pi_mock_")
        True
    """

    PROVIDER_ERRORS = [
        ("rate_limit", "Too many requests made to the API too quickly."),
        ("api_connection_error", "Payment service temporarily unavailable"),
        ("processing_error", "An error occurred while creating the payment."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        intent_status: str = "succeeded",
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.intent_status = intent_status
        self.created_intents: list[PaymentResult] = []

        logger.info(
            f"MockPaymentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    def _generate_payment_intent_id(self) -> str:
        """Generate a Stripe-like payment intent ID."""
        return f"pi_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        receipt_email: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Simulate creating a payment intent.

        The client secret looks like Stripe's but will not work with Stripe.js.
        """
        if amount is None or amount <= 0:
            return PaymentResult(
                success=False,
                error_message="Invalid amount",
                error_code="invalid_amount",
            )

        latency_ms = await self._simulate_latency()

        if self._should_fail():
            error_code, error_message = random.choice(self.PROVIDER_ERRORS)
            logger.debug(f"Mock: Payment intent failed - {error_code}")
            return PaymentResult(
                success=False,
                amount=amount,
                currency=currency,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        payment_intent_id = self._generate_payment_intent_id()
        result = PaymentResult(
            success=True,
            payment_intent_id=payment_intent_id,
            client_secret=f"{payment_intent_id}_secret_mock",
            amount=amount,
            currency=currency,
            status="requires_payment_method",
            response_time_ms=latency_ms,
            metadata={
                "receipt_email": receipt_email,
                "mock": True,
                **(metadata or {}),
            },
        )
        self.created_intents.append(result)

        logger.info(f"Mock: Created payment intent {payment_intent_id} - ${amount:.2f}")
        return result

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentResult:
        for intent in self.created_intents:
            if intent.payment_intent_id == payment_intent_id:
                return PaymentResult(
                    success=True,
                    payment_intent_id=payment_intent_id,
                    amount=intent.amount,
                    currency=intent.currency,
                    status=self.intent_status,
                )

        logger.debug(f"Mock: No such payment intent {payment_intent_id}")
        return PaymentResult(
            success=False,
            payment_intent_id=payment_intent_id,
            error_message=f"No such payment_intent: '{payment_intent_id}'",
            error_code="resource_missing",
        )

    async def health_check(self) -> bool:
        logger.debug("Mock: Health check passed")
        return True
