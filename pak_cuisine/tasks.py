"""
Celery Tasks
Background email delivery for the admin "send email" and deal broadcast
actions. Checkout and form notifications are sent inline instead.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any

from fastapi.encoders import jsonable_encoder

from pak_cuisine.celery_worker import celery_app
from pak_cuisine.core.config import StorageBackend, get_settings
from pak_cuisine.services.notifications import (
    EmailDispatcher,
    EmailTemplateError,
    get_email_dispatcher,
)

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Every channel failed; raised so Celery retries the task."""


async def _dispatch(request: dict):
    try:
        return await get_email_dispatcher().dispatch(**request)
    finally:
        # Each task runs its own event loop; pooled connections must not outlive it
        if get_settings().storage_backend == StorageBackend.SQL:
            from pak_cuisine.database import get_engine

            await get_engine().dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True
)
def send_email_task(self, request: dict) -> dict:
    """
    Render and deliver one email request in the worker.

    Args:
        request: {template, kind, payload, items, config?}

    Returns:
        dict: {success, method, recipient, task_id, processing_time_seconds}
    """
    task_id = self.request.id
    logger.info(f"Task {task_id}: sending {request.get('template')}")
    start_time = time.time()

    try:
        result = asyncio.run(_dispatch(request))
    except EmailTemplateError as e:
        # Bad request data will not get better on retry
        logger.error(f"Task {task_id}: {e}")
        return {"success": False, "error": str(e), "task_id": task_id}

    elapsed = round(time.time() - start_time, 3)
    if not result.success:
        logger.warning(f"Task {task_id}: delivery failed after {elapsed}s - {result.error_message}")
        raise EmailDeliveryError(result.error_message)

    logger.info(f"Task {task_id}: delivered via {result.method} in {elapsed}s")
    return {**result.to_dict(), "task_id": task_id, "processing_time_seconds": elapsed}


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }


async def deliver_emails(requests: list[dict[str, Any]], dispatcher: EmailDispatcher) -> list[dict]:
    """
    Send each request inline, or queue it when BACKGROUND_EMAIL is on.

    Inline template errors propagate to the caller.
    """
    if get_settings().background_email:
        queued = []
        for request in requests:
            task = send_email_task.delay(jsonable_encoder(request))
            queued.append({"success": True, "method": "queued", "task_id": task.id})
        return queued

    return [(await dispatcher.dispatch(**request)).to_dict() for request in requests]
