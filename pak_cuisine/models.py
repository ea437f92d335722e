"""
SQLAlchemy Database Models

One table per storefront entity. Rows carry no behaviour; every service
handles them as plain dicts through the backend layer. Status columns are
stored as strings; the enums below define their allowed values.

TABLES maps table names to models and is shared by the SQL and in-memory
backends so both apply the same columns, defaults and unique keys.
"""

import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from pak_cuisine.database import Base


def new_uuid() -> str:
    return str(uuid.uuid4())


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ACTIVE_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
)
HISTORY_ORDER_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    """Cash on delivery or card through the hosted widget."""
    COD = "cod"
    CARD = "card"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


# =============================================================================
# MENU
# =============================================================================

class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    category_id = Column(String(36), ForeignKey("menu_categories.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_vegetarian = Column(Boolean, nullable=False, default=False)
    is_halal = Column(Boolean, nullable=False, default=True)
    is_gluten_free = Column(Boolean, nullable=False, default=False)
    spicy_level = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Deal(Base):
    """Time-limited bundle, stored apart from regular menu items."""
    __tablename__ = "deals"

    id = Column(String(36), primary_key=True, default=new_uuid)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=True, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class OpeningHours(Base):
    __tablename__ = "opening_hours"

    id = Column(String(36), primary_key=True, default=new_uuid)
    day_of_week = Column(Integer, nullable=False)
    open_time = Column(String(5), nullable=True)
    close_time = Column(String(5), nullable=True)
    is_closed = Column(Boolean, nullable=False, default=False)


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """
    Order header - one row per checkout.

    Lines live in order_items. There is no compensation if the lines insert
    fails after this row is written.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=True, index=True)

    # Customer
    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(30), nullable=False)
    delivery_address = Column(Text, nullable=False)
    order_type = Column(String(20), nullable=True, default="delivery")

    # Payment
    payment_method = Column(String(20), nullable=True)
    payment_status = Column(String(20), nullable=True, default=PaymentStatus.PENDING.value)
    payment_reference = Column(String(100), nullable=True)

    order_status = Column(String(30), nullable=True, default=OrderStatus.PENDING.value, index=True)
    total_amount = Column(Float, nullable=False)
    special_instructions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Order {self.id} - {self.customer_name} - {self.order_status}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=True, index=True)
    item_name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)


# =============================================================================
# BOOKINGS & CONTACT
# =============================================================================

class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    guest_name = Column(String(100), nullable=False)
    guest_email = Column(String(255), nullable=False)
    guest_phone = Column(String(30), nullable=True)
    party_size = Column(Integer, nullable=False, default=2)
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(String(5), nullable=False)
    special_requests = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    subject = Column(String(200), nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# =============================================================================
# CONTENT
# =============================================================================

class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=new_uuid)
    title = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    featured_image = Column(String(500), nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    author_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(String(36), primary_key=True, default=new_uuid)
    image_url = Column(String(500), nullable=False)
    caption = Column(String(300), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=new_uuid)
    customer_name = Column(String(100), nullable=False)
    customer_image = Column(String(500), nullable=True)
    rating = Column(Integer, nullable=False, default=5)
    review_text = Column(Text, nullable=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SiteSetting(Base):
    """Operator-editable key-value configuration (theme, seo, contact, social, smtp)."""
    __tablename__ = "site_settings"

    id = Column(String(36), primary_key=True, default=new_uuid)
    key = Column(String(50), nullable=False, unique=True)
    value = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# =============================================================================
# USERS
# =============================================================================

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, unique=True)
    role = Column(String(10), nullable=False, default=AppRole.USER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    token = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


TABLES = {
    model.__tablename__: model
    for model in (
        MenuCategory,
        MenuItem,
        Deal,
        OpeningHours,
        Order,
        OrderItem,
        Reservation,
        ContactSubmission,
        Subscriber,
        BlogPost,
        GalleryImage,
        Testimonial,
        SiteSetting,
        Profile,
        UserRole,
        AuthSession,
    )
}
