"""
FastAPI Application Entry Point

Pak Cuisine - restaurant storefront, ordering and admin API.
Supports both Mock services (development) and Real APIs (production).

Endpoints:
    - POST /functions/payment: Payment-intent creation
    - POST /functions/send-email: Transactional email dispatch
    - /api/cart/*: Server-held cart
    - POST /api/checkout: Place an order
    - /api/*: Storefront (menu, deals, reservations, blog, chat, ...)
    - /api/auth/*: Sign up / sign in / sign out
    - /admin/*: Admin panels, dashboard, settings, users (admin role)
    - WS /admin/realtime: New order / reservation feed
    - GET /health: System health check
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import redis
from fastapi import (
    Body,
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pak_cuisine.core.config import StorageBackend, get_settings, setup_logging
from pak_cuisine.models import ReservationStatus
from pak_cuisine.schemas import (
    CartItemAdd,
    CartQuantityUpdate,
    CartResponse,
    ChatRequest,
    ChatResponse,
    CheckoutRequest,
    ContactCreate,
    HealthResponse,
    ManualEmailRequest,
    PaymentFunctionRequest,
    PaymentIntentRequest,
    ReservationCreate,
    RoleUpdate,
    SendEmailRequest,
    SettingUpdate,
    SignInRequest,
    SignUpRequest,
    StatusUpdate,
    SubscribeRequest,
    UserCreate,
)
from pak_cuisine.services.admin import (
    AdminPanel,
    PanelNotFoundError,
    PanelValidationError,
    SiteSettingsService,
    build_panels,
    dashboard_summary,
)
from pak_cuisine.services.auth import AuthError, AuthService
from pak_cuisine.services.backend import (
    BackendError,
    BaseBackend,
    DuplicateKeyError,
    get_backend,
)
from pak_cuisine.services.cart import get_cart
from pak_cuisine.services.chatbot import respond
from pak_cuisine.services.checkout import (
    EMAIL_PATTERN,
    CheckoutError,
    CheckoutForm,
    CheckoutOrchestrator,
)
from pak_cuisine.services.notifications import (
    EmailDispatcher,
    EmailTemplateError,
    get_email_dispatcher,
)
from pak_cuisine.services.payment import BasePaymentService, get_payment_service
from pak_cuisine.services.realtime import get_broker
from pak_cuisine.tasks import deliver_emails

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

TRACKING_STEPS = ["received", "preparing", "out_for_delivery", "delivered"]
TRACKING_STEP_OF_STATUS = {
    "pending": 0,
    "confirmed": 0,
    "preparing": 1,
    "out_for_delivery": 2,
    "delivered": 3,
    "cancelled": -1,
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Storage: {settings.storage_backend.value}")
    logger.info("=" * 60)

    if settings.storage_backend == StorageBackend.SQL:
        from pak_cuisine.database import init_db

        await init_db()
        logger.info("Database initialized")

    backend = get_backend()
    logger.info(f"Backend: {backend.provider_name}")
    logger.info(f"Payment Service: {get_payment_service().provider_name}")

    if settings.admin_password:
        admin = await AuthService(backend).ensure_admin(settings.admin_email, settings.admin_password)
        if admin["role"] == "admin":
            logger.info(f"Admin account ready: {settings.admin_email}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    if settings.storage_backend == StorageBackend.SQL:
        from pak_cuisine.database import get_engine

        await get_engine().dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant storefront and ordering API: menu, cart, checkout, "
        "reservations, chatbot and the admin panels behind them."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_auth_service(backend: BaseBackend = Depends(get_backend)) -> AuthService:
    return AuthService(backend)


def get_panels(backend: BaseBackend = Depends(get_backend)) -> dict[str, AdminPanel]:
    return build_panels(backend)


def get_orchestrator(
    backend: BaseBackend = Depends(get_backend),
    payment_service: BasePaymentService = Depends(get_payment_service),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(backend, payment_service, dispatcher)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[dict]:
    return await auth.user_for_token(_bearer_token(authorization))


async def require_user(user: Optional[dict] = Depends(current_user)) -> dict:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def require_admin(user: dict = Depends(require_user)) -> dict:
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def panel_or_404(panels: dict[str, AdminPanel], name: str) -> AdminPanel:
    if name not in panels:
        raise HTTPException(status_code=404, detail=f"Unknown panel: {name}. Options: {sorted(panels)}")
    return panels[name]


def require_fields(values: dict[str, Any], labels: dict[str, str]) -> None:
    missing = [label for key, label in labels.items() if not str(values.get(key) or "").strip()]
    if missing:
        raise HTTPException(
            status_code=422,
            detail=f"Please fill in all required fields ({', '.join(missing)}).",
        )


def require_email(email: str) -> None:
    if not EMAIL_PATTERN.match((email or "").strip()):
        raise HTTPException(status_code=422, detail="Please enter a valid email address.")


async def notify(dispatcher: EmailDispatcher, **request: Any) -> Optional[dict]:
    """Best-effort email: failures are logged and reported, never raised."""
    try:
        result = await dispatcher.dispatch(**request)
    except EmailTemplateError as e:
        logger.error(f"Notification {request.get('template')} skipped: {e}")
        return None
    except Exception as e:
        logger.exception(f"Notification {request.get('template')} error: {e}")
        return None
    if not result.success:
        logger.error(f"Notification {request.get('template')} failed: {result.error_message}")
    return result.to_dict()


def cart_response(cart, notice: Optional[str] = None) -> CartResponse:
    return CartResponse(**cart.to_dict(), notice=notice)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    backend: BaseBackend = Depends(get_backend),
    payment_service: BasePaymentService = Depends(get_payment_service),
) -> HealthResponse:
    """Verify all system components are operational."""

    backend_status = "healthy" if await backend.health_check() else "unhealthy"

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    payment_status = "healthy" if await payment_service.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [backend_status, redis_status, payment_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        environment=settings.env_mode.value,
        version=settings.app_version,
        backend=backend_status,
        redis=redis_status,
        payment_service=payment_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# FUNCTIONS (payment intent, send email)
# =============================================================================

@app.post("/functions/payment", tags=["Functions"], summary="Create Payment Intent")
async def payment_function(
    body: PaymentFunctionRequest,
    payment_service: BasePaymentService = Depends(get_payment_service),
):
    """Returns {clientSecret} for the hosted payment widget, or 400 {error}."""
    if not body.amount or body.amount <= 0:
        return JSONResponse(status_code=400, content={"error": "Invalid amount"})

    result = await payment_service.create_payment_intent(
        amount=body.amount,
        currency=settings.stripe_currency,
        receipt_email=body.email,
    )
    if not result.success:
        logger.error(f"Payment Function Error: {result.error_message}")
        return JSONResponse(status_code=400, content={"error": result.error_message})

    return {"clientSecret": result.client_secret}


@app.post("/functions/send-email", tags=["Functions"], summary="Send Transactional Email")
async def send_email_function(
    body: SendEmailRequest,
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
    user: Optional[dict] = Depends(current_user),
):
    """
    Operator SMTP first, then the transactional API. 400 {error} on failure.

    A request-level SMTP ``config`` is only honoured for admin callers.
    """
    logger.info(f"Received request: template={body.template}, type={body.type}")
    config = body.config
    if config and (user is None or user["role"] != "admin"):
        logger.warning("Ignoring SMTP config sent by a non-admin caller")
        config = None
    try:
        result = await dispatcher.dispatch(
            template=body.template,
            kind=body.type,
            payload=body.payload,
            items=body.items,
            config=config,
        )
    except EmailTemplateError as e:
        logger.error(f"Error in send-email function: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    if not result.success:
        return JSONResponse(status_code=400, content={"error": result.error_message})
    return result.to_dict()


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@app.get("/api/cart/{cart_id}", response_model=CartResponse, tags=["Cart"])
async def read_cart(cart_id: str) -> CartResponse:
    return cart_response(get_cart(cart_id))


@app.post("/api/cart/{cart_id}/items", response_model=CartResponse, tags=["Cart"])
async def add_cart_item(cart_id: str, item: CartItemAdd) -> CartResponse:
    cart = get_cart(cart_id)
    notice = cart.add_item(item.model_dump())
    return cart_response(cart, notice)


@app.patch("/api/cart/{cart_id}/items/{item_id}", response_model=CartResponse, tags=["Cart"])
async def update_cart_item(cart_id: str, item_id: str, body: CartQuantityUpdate) -> CartResponse:
    cart = get_cart(cart_id)
    cart.update_quantity(item_id, body.delta)
    return cart_response(cart)


@app.delete("/api/cart/{cart_id}/items/{item_id}", response_model=CartResponse, tags=["Cart"])
async def remove_cart_item(cart_id: str, item_id: str) -> CartResponse:
    cart = get_cart(cart_id)
    cart.remove_item(item_id)
    return cart_response(cart)


@app.delete("/api/cart/{cart_id}", response_model=CartResponse, tags=["Cart"])
async def clear_cart(cart_id: str) -> CartResponse:
    cart = get_cart(cart_id)
    cart.clear()
    return cart_response(cart)


# =============================================================================
# CHECKOUT ENDPOINTS
# =============================================================================

@app.post("/api/checkout/payment-intent", tags=["Checkout"])
async def checkout_payment_intent(
    body: PaymentIntentRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> dict[str, Optional[str]]:
    client_secret = await orchestrator.prepare_card_payment(get_cart(body.cart_id), body.email)
    return {"clientSecret": client_secret, "publishableKey": settings.stripe_publishable_key}


@app.post("/api/checkout", status_code=201, tags=["Checkout"])
async def checkout(
    body: CheckoutRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
    user: Optional[dict] = Depends(current_user),
) -> dict[str, Any]:
    form = CheckoutForm(
        name=body.name,
        email=body.email,
        phone=body.phone,
        address=body.address,
        instructions=body.instructions or "",
        payment_method=body.payment_method,
        user_id=user["id"] if user else None,
    )
    confirmation = await orchestrator.place_order(
        get_cart(body.cart_id), form, payment_reference=body.payment_reference
    )
    return confirmation.to_dict()


# =============================================================================
# STOREFRONT ENDPOINTS
# =============================================================================

@app.get("/api/menu", tags=["Storefront"])
async def menu(backend: BaseBackend = Depends(get_backend)) -> list[dict[str, Any]]:
    """Active categories with their available items, in display order."""
    categories = await backend.table("menu_categories").select(
        filters={"is_active": True}, order_by="display_order"
    )
    items = await backend.table("menu_items").select(
        filters={"is_available": True}, order_by="display_order"
    )
    by_category: dict[Optional[str], list[dict]] = {}
    for item in items:
        by_category.setdefault(item.get("category_id"), []).append(item)
    return [{**category, "items": by_category.get(category["id"], [])} for category in categories]


@app.get("/api/deals", tags=["Storefront"])
async def active_deals(backend: BaseBackend = Depends(get_backend)) -> list[dict[str, Any]]:
    return await backend.table("deals").select(
        filters={"is_active": True}, order_by="created_at", descending=True
    )


@app.post("/api/subscribe", status_code=201, tags=["Storefront"])
async def subscribe(
    body: SubscribeRequest,
    backend: BaseBackend = Depends(get_backend),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> dict[str, Any]:
    email = body.email.strip().lower()
    require_email(email)
    try:
        subscriber = await backend.table("subscribers").insert({"email": email})
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="You're already subscribed!")

    notification = await notify(
        dispatcher, template="subscription_confirmation", kind="subscription", payload={"email": email}
    )
    return {"success": True, "subscriber": subscriber, "notification": notification}


@app.post("/api/reservations", status_code=201, tags=["Storefront"])
async def create_reservation(
    body: ReservationCreate,
    backend: BaseBackend = Depends(get_backend),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
    user: Optional[dict] = Depends(current_user),
) -> dict[str, Any]:
    values = body.model_dump(exclude={"items"})
    require_fields(values, {"guest_name": "Name", "guest_email": "Email", "guest_phone": "Phone"})
    require_email(body.guest_email)

    reservation = await backend.table("reservations").insert({
        **values,
        "user_id": user["id"] if user else None,
        "status": ReservationStatus.PENDING.value,
    })
    logger.info(f"Reservation created: {reservation['id']} - {reservation['guest_name']}")

    items = [item.model_dump() for item in body.items] if body.items else None
    payload = jsonable_encoder(reservation)
    await notify(dispatcher, template="admin_alert", kind="reservation", payload=payload, items=items)
    await notify(dispatcher, template="customer_confirmation", kind="reservation", payload=payload, items=items)

    return {"success": True, "reservation": reservation}


@app.post("/api/contact", status_code=201, tags=["Storefront"])
async def contact(
    body: ContactCreate,
    backend: BaseBackend = Depends(get_backend),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> dict[str, Any]:
    values = body.model_dump()
    require_fields(values, {"name": "Name", "email": "Email", "message": "Message"})
    require_email(body.email)

    result = await dispatcher.dispatch(template="admin_alert", kind="contact", payload=values)
    if not result.success:
        logger.error(f"Contact form email failed: {result.error_message}")
        raise HTTPException(status_code=502, detail="Failed to send message. Please try again.")

    submission = await backend.table("contact_submissions").insert(values)
    return {"success": True, "submission": submission}


@app.get("/api/blog", tags=["Storefront"])
async def blog_posts(backend: BaseBackend = Depends(get_backend)) -> list[dict[str, Any]]:
    return await backend.table("blog_posts").select(
        filters={"is_published": True}, order_by="published_at", descending=True
    )


@app.get("/api/blog/{slug}", tags=["Storefront"])
async def blog_post(slug: str, backend: BaseBackend = Depends(get_backend)) -> dict[str, Any]:
    post = await backend.table("blog_posts").find_one(slug=slug, is_published=True)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@app.get("/api/gallery", tags=["Storefront"])
async def gallery(backend: BaseBackend = Depends(get_backend)) -> list[dict[str, Any]]:
    return await backend.table("gallery_images").select(
        filters={"is_visible": True}, order_by="display_order"
    )


@app.get("/api/testimonials", tags=["Storefront"])
async def testimonials(backend: BaseBackend = Depends(get_backend)) -> list[dict[str, Any]]:
    return await backend.table("testimonials").select(
        filters={"is_visible": True}, order_by="created_at", descending=True
    )


@app.get("/api/orders/{order_id}/tracking", tags=["Storefront"])
async def track_order(order_id: str, backend: BaseBackend = Depends(get_backend)) -> dict[str, Any]:
    order = await backend.table("orders").get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order #{order_id[:8]} not found")
    items = await backend.table("order_items").select(filters={"order_id": order_id})
    return {
        "order": order,
        "items": items,
        "steps": TRACKING_STEPS,
        "current_step": TRACKING_STEP_OF_STATUS.get(order.get("order_status"), 0),
    }


@app.get("/api/me/orders", tags=["Storefront"])
async def my_orders(
    user: dict = Depends(require_user),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> list[dict[str, Any]]:
    return await panels["orders"].list_with_items(filters={"user_id": user["id"]})


@app.get("/api/settings/public", tags=["Storefront"])
async def public_settings(backend: BaseBackend = Depends(get_backend)) -> dict[str, Any]:
    return await SiteSettingsService(backend).get_public()


@app.post("/api/chat", response_model=ChatResponse, tags=["Storefront"])
async def chat(body: ChatRequest, backend: BaseBackend = Depends(get_backend)) -> ChatResponse:
    try:
        reply = await respond(body.message, backend)
    except BackendError as e:
        logger.error(f"Chatbot data fetch failed: {e}")
        return ChatResponse(
            content="Sorry, I'm having trouble connecting right now. Please try again in a moment.",
            type="text",
        )
    return ChatResponse(**reply.to_dict())


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post("/api/auth/signup", status_code=201, tags=["Auth"])
async def sign_up(body: SignUpRequest, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    user = await auth.sign_up(body.email, body.password, body.full_name)
    return {"success": True, "user": user}


@app.post("/api/auth/signin", tags=["Auth"])
async def sign_in(body: SignInRequest, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    return await auth.sign_in(body.email, body.password)


@app.post("/api/auth/signout", tags=["Auth"])
async def sign_out(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, bool]:
    token = _bearer_token(authorization)
    return {"success": await auth.sign_out(token) if token else False}


@app.get("/api/auth/me", tags=["Auth"])
async def me(user: dict = Depends(require_user)) -> dict[str, Any]:
    return user


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@app.get("/admin/dashboard", tags=["Admin"])
async def admin_dashboard(
    _: dict = Depends(require_admin),
    backend: BaseBackend = Depends(get_backend),
) -> dict[str, Any]:
    return {**await dashboard_summary(backend), "environment": settings.env_mode.value}


@app.get("/admin/panels/{panel}", tags=["Admin"])
async def admin_list(
    panel: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> list[dict[str, Any]]:
    if panel == "orders":
        return await panels["orders"].list_with_items()
    return await panel_or_404(panels, panel).list()


@app.get("/admin/panels/{panel}/{row_id}", tags=["Admin"])
async def admin_get(
    panel: str,
    row_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    if panel == "orders":
        return await panels["orders"].get_with_items(row_id)
    return await panel_or_404(panels, panel).get(row_id)


@app.post("/admin/panels/{panel}", status_code=201, tags=["Admin"])
async def admin_create(
    panel: str,
    values: dict[str, Any] = Body(...),
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panel_or_404(panels, panel).create(values)


@app.put("/admin/panels/{panel}/{row_id}", tags=["Admin"])
async def admin_update(
    panel: str,
    row_id: str,
    values: dict[str, Any] = Body(...),
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panel_or_404(panels, panel).update(row_id, values)


@app.delete("/admin/panels/{panel}/{row_id}", tags=["Admin"])
async def admin_delete(
    panel: str,
    row_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, bool]:
    await panel_or_404(panels, panel).delete(row_id)
    return {"success": True}


@app.get("/admin/orders/board", tags=["Admin"])
async def admin_order_board(
    search: Optional[str] = Query(None),
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, list[dict[str, Any]]]:
    return await panels["orders"].split(search)


@app.patch("/admin/orders/{order_id}/status", tags=["Admin"])
async def admin_order_status(
    order_id: str,
    body: StatusUpdate,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panels["orders"].update_status(order_id, body.status)


@app.post("/admin/orders/{order_id}/email", tags=["Admin"])
async def admin_order_email(
    order_id: str,
    body: ManualEmailRequest,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> dict[str, Any]:
    request = await panels["orders"].customer_email_request(order_id, body.template)
    try:
        [result] = await deliver_emails([request], dispatcher)
    except EmailTemplateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not result["success"]:
        raise HTTPException(status_code=502, detail=f"Failed to send email: {result.get('error')}")
    return result


@app.patch("/admin/reservations/{reservation_id}/status", tags=["Admin"])
async def admin_reservation_status(
    reservation_id: str,
    body: StatusUpdate,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panels["reservations"].update_status(reservation_id, body.status)


@app.post("/admin/contacts/{contact_id}/read", tags=["Admin"])
async def admin_contact_read(
    contact_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panels["contacts"].mark_read(contact_id)


@app.post("/admin/gallery/{image_id}/toggle-visibility", tags=["Admin"])
async def admin_gallery_toggle(
    image_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panels["gallery"].toggle_visibility(image_id)


@app.post("/admin/blog/{post_id}/toggle-publish", tags=["Admin"])
async def admin_blog_toggle(
    post_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
) -> dict[str, Any]:
    return await panels["blog"].toggle_publish(post_id)


@app.post("/admin/deals/{deal_id}/broadcast", tags=["Admin"])
async def admin_deal_broadcast(
    deal_id: str,
    _: dict = Depends(require_admin),
    panels: dict[str, AdminPanel] = Depends(get_panels),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> dict[str, Any]:
    requests = await panels["deals"].broadcast_requests(deal_id)
    if not requests:
        return {"success": True, "sent": 0, "message": "There are no subscribers to broadcast to yet."}

    results = await deliver_emails(requests, dispatcher)
    sent = sum(1 for r in results if r["success"])
    logger.info(f"Deal {deal_id} broadcast: {sent}/{len(results)} delivered")
    return {"success": sent == len(results), "sent": sent, "failed": len(results) - sent, "results": results}


@app.get("/admin/settings", tags=["Admin"])
async def admin_settings(
    _: dict = Depends(require_admin),
    backend: BaseBackend = Depends(get_backend),
) -> dict[str, Any]:
    return await SiteSettingsService(backend).get_all()


@app.put("/admin/settings/{key}", tags=["Admin"])
async def admin_save_setting(
    key: str,
    body: SettingUpdate,
    _: dict = Depends(require_admin),
    backend: BaseBackend = Depends(get_backend),
) -> dict[str, Any]:
    return await SiteSettingsService(backend).save(key, body.value)


@app.get("/admin/users", tags=["Admin"])
async def admin_users(
    _: dict = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
) -> list[dict[str, Any]]:
    return await auth.list_users()


@app.post("/admin/users", status_code=201, tags=["Admin"])
async def admin_create_user(
    body: UserCreate,
    _: dict = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    return await auth.sign_up(body.email, body.password, body.full_name, role=body.role)


@app.patch("/admin/users/{user_id}/role", tags=["Admin"])
async def admin_set_role(
    user_id: str,
    body: RoleUpdate,
    admin: dict = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    if user_id == admin["id"] and body.role != "admin":
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")
    return await auth.set_role(user_id, body.role)


@app.websocket("/admin/realtime")
async def admin_realtime(websocket: WebSocket, token: Optional[str] = Query(None)):
    """Streams {table, event, record, message} for new orders and reservations."""
    user = await AuthService(get_backend()).user_for_token(token)
    if user is None or user["role"] != "admin":
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    broker = get_broker()
    queue = broker.subscribe()
    await websocket.accept()
    logger.info(f"Realtime feed opened for {user['email']}")

    async def forward_events():
        while True:
            event = await queue.get()
            await websocket.send_json(jsonable_encoder(event.to_dict()))

    sender = asyncio.create_task(forward_events())
    try:
        # Nothing is expected from the client; this only waits for the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Realtime feed closed for {user['email']}")
    finally:
        sender.cancel()
        broker.unsubscribe(queue)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    content = {"success": False, "title": exc.title, "error": exc.message}
    if exc.order_id:
        content["order_id"] = exc.order_id
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(PanelValidationError)
async def panel_validation_handler(request: Request, exc: PanelValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": str(exc), "fields": exc.fields},
    )


@app.exception_handler(PanelNotFoundError)
async def panel_not_found_handler(request: Request, exc: PanelNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": str(exc)})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    logger.error(f"Backend error on {request.method} {request.url.path}: {exc}")
    action = re.sub(r"[/_-]+", " ", request.url.path).strip() or "complete request"
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": f"Failed to {request.method.lower()} {action}",
            "detail": str(exc) if settings.debug else None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pak_cuisine.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
