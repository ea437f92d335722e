"""
Site Settings

Operator-editable configuration stored as key-value rows in site_settings
and read back as one mapping. Saving is an upsert on ``key``.
"""

import logging
from typing import Any

from pak_cuisine.services.admin.panels import PanelValidationError
from pak_cuisine.services.backend import BaseBackend
from pak_cuisine.services.notifications import parse_port

logger = logging.getLogger(__name__)

SETTING_KEYS = ("theme", "seo", "contact", "social", "smtp")
PUBLIC_SETTING_KEYS = ("theme", "seo", "contact", "social")


class SiteSettingsService:

    def __init__(self, backend: BaseBackend):
        self.backend = backend

    async def get_all(self) -> dict[str, Any]:
        rows = await self.backend.table("site_settings").select()
        return {row["key"]: row["value"] for row in rows}

    async def get_public(self) -> dict[str, Any]:
        settings = await self.get_all()
        return {key: settings[key] for key in PUBLIC_SETTING_KEYS if key in settings}

    async def save(self, key: str, value: dict[str, Any]) -> dict:
        if key not in SETTING_KEYS:
            raise PanelValidationError(["key"], f"Unknown setting. Options: {list(SETTING_KEYS)}")
        if key == "smtp" and value and value.get("port") not in (None, ""):
            try:
                value = {**value, "port": parse_port(value["port"])}
            except ValueError as e:
                raise PanelValidationError(["port"], str(e)) from e
        row = await self.backend.table("site_settings").upsert(
            {"key": key, "value": value or {}}, on_conflict="key"
        )
        logger.info(f"Site setting saved: {key}")
        return row
