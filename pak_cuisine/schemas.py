"""
Pydantic Schemas for Request/Response Validation

Checkout, reservation and contact forms keep their fields loose (plain
strings) so the services can report "required field" problems with the
storefront's own wording.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# CART
# =============================================================================

class CartItemAdd(BaseModel):
    """Item to add to the cart (one unit)."""
    id: str = Field(..., min_length=1, examples=["chicken-biryani"])
    name: str = Field(..., min_length=1, max_length=150, examples=["Chicken Biryani"])
    price: float = Field(..., ge=0, examples=[12.99])
    image: Optional[str] = Field(default="", examples=["/images/biryani.jpg"])


class CartQuantityUpdate(BaseModel):
    delta: int = Field(..., examples=[1, -1])


class CartLineResponse(BaseModel):
    id: str
    name: str
    price: float
    image: str = ""
    quantity: int


class CartResponse(BaseModel):
    cart_id: str
    items: List[CartLineResponse]
    total: float
    count: int
    notice: Optional[str] = None


# =============================================================================
# CHECKOUT & FUNCTIONS
# =============================================================================

class CheckoutRequest(BaseModel):
    """Delivery form submitted with a cart."""
    cart_id: str = Field(..., min_length=1)
    name: str = Field(default="", examples=["Ali Khan"])
    email: str = Field(default="", examples=["ali@example.com"])
    phone: str = Field(default="", examples=["+92 300 1234567"])
    address: str = Field(default="", examples=["House 12, Street 4, DHA Phase 5, Lahore"])
    instructions: Optional[str] = Field(default="", max_length=500)
    payment_method: str = Field(default="cod", examples=["cod", "card"])
    payment_reference: Optional[str] = Field(default=None, examples=["pi_3Nx..."])


class PaymentIntentRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)
    email: Optional[str] = None


class PaymentFunctionRequest(BaseModel):
    """Body of the payment function: amount in dollars."""
    amount: Optional[float] = Field(default=None, examples=[25.0])
    email: Optional[str] = Field(default=None, examples=["ali@example.com"])


class SendEmailRequest(BaseModel):
    """Body of the send-email function."""
    type: Optional[str] = Field(default=None, examples=["order", "reservation", "contact"])
    template: Optional[str] = Field(default=None, examples=["admin_alert"])
    payload: Optional[dict[str, Any]] = None
    items: Optional[List[dict[str, Any]]] = None
    config: Optional[dict[str, Any]] = None


# =============================================================================
# STOREFRONT FORMS
# =============================================================================

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000, examples=["Any biryani deals?"])


class ChatResponse(BaseModel):
    content: str
    type: str = "text"
    data: Optional[Any] = None


class SubscribeRequest(BaseModel):
    email: str = Field(..., examples=["foodie@example.com"])


class ReservationItem(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)


class ReservationCreate(BaseModel):
    guest_name: str = Field(default="", examples=["Sara Ahmed"])
    guest_email: str = Field(default="", examples=["sara@example.com"])
    guest_phone: str = Field(default="", examples=["+92 321 7654321"])
    party_size: int = Field(default=2, ge=1, le=50)
    reservation_date: date = Field(..., examples=["2026-11-02"])
    reservation_time: str = Field(..., examples=["19:30"])
    special_requests: Optional[str] = Field(default=None, max_length=500)
    items: Optional[List[ReservationItem]] = None

    @field_validator("reservation_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError("reservation_time must be HH:MM")
        return v


class ContactCreate(BaseModel):
    name: str = Field(default="")
    email: str = Field(default="")
    phone: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(default="")


# =============================================================================
# AUTH & USERS
# =============================================================================

class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class UserCreate(SignUpRequest):
    role: str = Field(default="admin", examples=["admin", "user"])


class RoleUpdate(BaseModel):
    role: str = Field(..., examples=["admin", "user"])


# =============================================================================
# ADMIN
# =============================================================================

class StatusUpdate(BaseModel):
    status: str = Field(..., examples=["preparing"])


class ManualEmailRequest(BaseModel):
    template: str = Field(..., examples=["customer_confirmation", "customer_thanks"])


class SettingUpdate(BaseModel):
    value: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# SYSTEM
# =============================================================================

class HealthResponse(BaseModel):
    """Response schema for health check."""
    status: str
    environment: str
    version: str
    backend: str
    redis: str
    payment_service: str
    timestamp: datetime
