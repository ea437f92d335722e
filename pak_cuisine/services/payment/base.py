"""
Payment Service Abstract Base Class

Defines the interface contract for payment-intent creation. Card payments
are collected by the hosted payment widget in the browser; the server only
creates the intent and hands back its client secret.

Design Pattern: Strategy Pattern
    - MockPaymentService in development (no API calls)
    - StripePaymentService in staging / production
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class PaymentResult:
    """
    Standardized result from payment-intent creation.

    Attributes:
        success: Whether the intent was created
        payment_intent_id: Provider identifier (Stripe format: pi_xxx)
        client_secret: Secret the payment widget confirms the intent with
        amount: Amount in dollars
        currency: Currency code (e.g., "usd")
        status: Provider intent status (e.g., "succeeded")
        error_message: Error description if creation failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the provider call
        metadata: Additional data from the payment provider
    """
    success: bool
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    amount: Optional[float] = None
    currency: str = "usd"
    status: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0
    metadata: Optional[dict] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "payment_intent_id": self.payment_intent_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "response_time_ms": self.response_time_ms,
            "metadata": self.metadata,
        }


def to_cents(amount: float) -> int:
    """Dollars to the smallest currency unit (10.00 -> 1000)."""
    return int(round(amount * 100))


class BasePaymentService(ABC):
    """
    Abstract base class for payment services.

    Example:
        >>> service = get_payment_service()
        >>> result = await service.create_payment_intent(
        ...     amount=25.00,
        ...     receipt_email="ali@example.com",
        ... )
        >>> result.client_secret
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the payment provider.

        Returns:
            str: Provider name (e.g., "mock", "stripe")
        """
        pass

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        receipt_email: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Create a payment intent for client-side confirmation.

        Args:
            amount: Amount in dollars; must be greater than 0
            currency: Currency code
            receipt_email: Where the provider sends the receipt
            metadata: Additional data to attach

        Returns:
            PaymentResult: Carries client_secret on success
        """
        pass

    @abstractmethod
    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentResult:
        """
        Look up an existing payment intent.

        Args:
            payment_intent_id: Provider identifier returned at creation

        Returns:
            PaymentResult: Carries amount and status on success;
                success=False when the intent does not exist
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the payment service.

        Returns:
            bool: True if service is reachable and operational
        """
        pass
