"""
Checkout Orchestrator

Turns a cart plus a delivery form into a persisted order. Steps run in
sequence with no rollback:

    1. insert the order header
    2. insert one order line per cart line
    3. best-effort admin alert email (logged on failure, never raised)
    4. clear the cart

If step 2 fails after step 1 succeeded, the header row stays without lines
and the caller sees "Order Failed". There is no idempotency guard.

Card payments are collected by the hosted widget: prepare_card_payment()
returns a client secret, and place_order() is then called with the
widget's payment reference. The reference is looked up with the payment
provider and must be a succeeded intent for exactly the cart total.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from pak_cuisine.models import OrderStatus, PaymentMethod, PaymentStatus
from pak_cuisine.services.backend import BackendError, BaseBackend
from pak_cuisine.services.cart import CartStore
from pak_cuisine.services.notifications import DispatchResult, EmailDispatcher
from pak_cuisine.services.payment import BasePaymentService, to_cents

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class CheckoutError(Exception):
    """Checkout could not proceed. ``title`` is the headline shown to the customer."""

    def __init__(self, title: str, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.title = title
        self.message = message
        self.order_id = order_id


@dataclass
class CheckoutForm:
    name: str
    email: str
    phone: str
    address: str
    instructions: str = ""
    payment_method: str = PaymentMethod.COD.value
    user_id: Optional[str] = None

    def validate(self) -> None:
        if not all(v and v.strip() for v in (self.name, self.email, self.phone, self.address)):
            raise CheckoutError(
                "Missing Information",
                "Please fill in all required fields (Name, Email, Phone, and Address).",
            )
        if not EMAIL_PATTERN.match(self.email.strip()):
            raise CheckoutError("Invalid Email", "Please enter a valid email address.")
        if self.payment_method not in (PaymentMethod.COD.value, PaymentMethod.CARD.value):
            raise CheckoutError("Invalid Payment Method", f"Unsupported payment method: {self.payment_method}")


@dataclass
class OrderConfirmation:
    order: dict
    items: list[dict]
    notification: Optional[DispatchResult] = None
    title: str = "Order Placed Successfully!"
    message: str = "We'll start preparing your food right away."

    @property
    def order_id(self) -> str:
        return self.order["id"]

    def to_dict(self) -> dict:
        return {
            "success": True,
            "title": self.title,
            "message": self.message,
            "order_id": self.order_id,
            "order": self.order,
            "items": self.items,
            "notification": self.notification.to_dict() if self.notification else None,
        }


class CheckoutOrchestrator:

    def __init__(
        self,
        backend: BaseBackend,
        payment_service: BasePaymentService,
        dispatcher: EmailDispatcher,
    ):
        self.backend = backend
        self.payment_service = payment_service
        self.dispatcher = dispatcher

    async def prepare_card_payment(self, cart: CartStore, email: Optional[str] = None) -> str:
        """Request a payment handle for the cart total; returns the client secret."""
        if cart.is_empty or cart.total <= 0:
            raise CheckoutError("Empty Cart", "Add something to your cart before paying.")

        result = await self.payment_service.create_payment_intent(
            amount=round(cart.total, 2),
            receipt_email=email,
            metadata={"cart_id": cart.cart_id},
        )
        if not result.success or not result.client_secret:
            logger.error(f"Payment setup failed for cart {cart.cart_id}: {result.error_message}")
            raise CheckoutError(
                "Payment Setup Failed",
                result.error_message or "Could not set up secure payment.",
            )
        return result.client_secret

    async def _verify_card_payment(self, cart: CartStore, payment_reference: Optional[str]) -> None:
        if not payment_reference:
            raise CheckoutError("Payment Required", "Card orders need a completed payment.")

        intent = await self.payment_service.retrieve_payment_intent(payment_reference)
        if not intent.success:
            logger.warning(f"Unknown payment reference for cart {cart.cart_id}: {intent.error_message}")
            raise CheckoutError("Payment Required", "We could not find your card payment.")
        if intent.status != "succeeded":
            logger.warning(f"Payment {payment_reference} not completed: status={intent.status}")
            raise CheckoutError("Payment Required", "Your card payment has not completed yet.")
        if to_cents(intent.amount or 0) != to_cents(cart.total):
            logger.warning(
                f"Payment {payment_reference} amount {intent.amount} does not match cart total {cart.total:.2f}"
            )
            raise CheckoutError("Payment Required", "Your payment does not match the cart total.")

    async def place_order(
        self,
        cart: CartStore,
        form: CheckoutForm,
        payment_reference: Optional[str] = None,
    ) -> OrderConfirmation:
        form.validate()
        if cart.is_empty:
            raise CheckoutError("Empty Cart", "Your cart is empty.")
        paid_by_card = form.payment_method == PaymentMethod.CARD.value
        if paid_by_card:
            await self._verify_card_payment(cart, payment_reference)
        else:
            payment_reference = None

        lines = cart.items
        total = round(cart.total, 2)

        # 1. Order header
        try:
            order = await self.backend.table("orders").insert({
                "user_id": form.user_id,
                "customer_name": form.name.strip(),
                "customer_email": form.email.strip(),
                "customer_phone": form.phone.strip(),
                "delivery_address": form.address.strip(),
                "payment_method": form.payment_method,
                "payment_status": (PaymentStatus.PAID if paid_by_card else PaymentStatus.PENDING).value,
                "payment_reference": payment_reference,
                "order_status": OrderStatus.PENDING.value,
                "total_amount": total,
                "special_instructions": form.instructions or None,
            })
        except BackendError as e:
            logger.error(f"Database error creating order: {e}")
            raise CheckoutError("Order Failed", "Something went wrong. Please try again.") from e

        logger.info(f"Order created: {order['id']} - {order['customer_name']} - ${total:.2f}")

        # 2. Order lines
        try:
            items = await self.backend.table("order_items").insert_many([
                {
                    "order_id": order["id"],
                    "item_name": line.name,
                    "quantity": line.quantity,
                    "unit_price": line.price,
                    "total_price": line.price * line.quantity,
                }
                for line in lines
            ])
        except BackendError as e:
            logger.error(f"Error creating order items for {order['id']}: {e}")
            raise CheckoutError(
                "Order Failed", "Something went wrong. Please try again.", order_id=order["id"]
            ) from e

        # 3. Admin alert (best-effort)
        notification = None
        try:
            notification = await self.dispatcher.dispatch(
                template="admin_alert",
                kind="order",
                payload=order,
                items=[line.to_dict() for line in lines],
            )
            if not notification.success:
                logger.error(f"Confirmation system error for {order['id']}: {notification.error_message}")
        except Exception as e:
            logger.exception(f"Confirmation system error for {order['id']}: {e}")

        # 4. Done
        cart.clear()
        return OrderConfirmation(order=order, items=items, notification=notification)
