"""
Test configuration.

Every test runs against the in-memory backend, the in-memory cart storage
and the mock payment/email services. Cached factories are cleared around
each test so state never leaks between them.
"""

import os

os.environ["ENV_MODE"] = "development"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["CART_STORAGE"] = "memory"
os.environ["BACKGROUND_EMAIL"] = "false"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ.pop("ADMIN_PASSWORD", None)

import pytest  # noqa: E402

from pak_cuisine.core.config import get_settings  # noqa: E402
from pak_cuisine.services.backend import reset_backend  # noqa: E402
from pak_cuisine.services.cart import reset_cart_storage  # noqa: E402
from pak_cuisine.services.notifications import reset_email_dispatcher  # noqa: E402
from pak_cuisine.services.payment import reset_payment_service  # noqa: E402
from pak_cuisine.services.realtime import reset_broker  # noqa: E402


def reset_services() -> None:
    reset_backend()
    reset_broker()
    reset_cart_storage()
    reset_payment_service()
    reset_email_dispatcher()


@pytest.fixture(autouse=True)
def fresh_services():
    get_settings.cache_clear()
    reset_services()
    yield
    reset_services()
