"""
Checkout

Usage:
    from pak_cuisine.services.checkout import CheckoutForm, CheckoutOrchestrator

    orchestrator = CheckoutOrchestrator(get_backend(), get_payment_service(), get_email_dispatcher())
    confirmation = await orchestrator.place_order(cart, CheckoutForm(...))
"""

from pak_cuisine.services.checkout.orchestrator import (
    EMAIL_PATTERN,
    CheckoutError,
    CheckoutForm,
    CheckoutOrchestrator,
    OrderConfirmation,
)

__all__ = [
    "EMAIL_PATTERN",
    "CheckoutError",
    "CheckoutForm",
    "CheckoutOrchestrator",
    "OrderConfirmation",
]
