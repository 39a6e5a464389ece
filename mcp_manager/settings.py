"""Persistent application settings (config path, theme, embedded server)."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import TYPE_CHECKING, Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mcp_manager.constants import DEFAULT_PORT, SSE_PATH
from mcp_manager.errors import SettingsError

if TYPE_CHECKING:
    from mcp_manager.context import AppContext

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Application settings as stored in ``settings.json``."""

    model_config = ConfigDict(populate_by_name=True)

    config_path: str = Field(default="", alias="claudeConfigPath")
    dark_mode: bool = Field(default=False, alias="darkMode")
    server_enabled: bool = Field(default=False, alias="mcpServerEnabled")
    server_port: int = Field(default=DEFAULT_PORT, ge=0, le=65535, alias="mcpServerPort")
    sse_path: str = Field(default=SSE_PATH, alias="mcpSsePath")

    @field_validator("sse_path")
    @classmethod
    def _leading_slash(cls, v: str) -> str:
        v = v.strip() or SSE_PATH
        return v if v.startswith("/") else f"/{v}"

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _read_settings(path: str) -> Settings:
    """Load settings from disk, returning defaults if missing/corrupt."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        return Settings.model_validate(data)
    except FileNotFoundError:
        return Settings()
    except (OSError, ValueError, ValidationError):
        logger.warning("Could not load settings from %s, using defaults", path, exc_info=True)
        return Settings()


def _write_settings(path: str, settings: Settings) -> None:
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings.to_json_dict(), fh, indent=2)
    except OSError as exc:
        raise SettingsError(f"Failed to write settings file: {exc}") from exc


class SettingsStore:
    """Owns ``settings.json`` and keeps the shared settings cell current.

    The cache is updated with every load and every successful save so that
    lifecycle decisions never need to touch the disk.
    """

    def __init__(self, ctx: "AppContext") -> None:
        self._ctx = ctx

    @property
    def path(self) -> str:
        return self._ctx.settings_path

    async def load(self) -> Settings:
        """Read the settings file; never fails (defaults on any problem)."""
        settings = await asyncio.to_thread(_read_settings, self.path)
        await self._ctx.settings.set(settings)
        logger.debug(
            "Settings loaded from %s (server enabled: %s, port: %d)",
            self.path,
            settings.server_enabled,
            settings.server_port,
        )
        return settings

    async def save(self, settings: Settings) -> None:
        """Persist settings to disk, then apply them to the cache."""
        await asyncio.to_thread(_write_settings, self.path, settings)
        await self._ctx.settings.set(settings)
        logger.info("Settings saved to %s", self.path)

    async def snapshot(self) -> Settings:
        """The cached settings, without touching disk."""
        settings = await self._ctx.settings.get()
        return settings.model_copy()

    async def update(self, **changes: Any) -> Settings:
        """Apply field changes to the cached settings and save the result."""
        current = await self.snapshot()
        updated = Settings.model_validate({**current.model_dump(), **changes})
        await self.save(updated)
        return updated
