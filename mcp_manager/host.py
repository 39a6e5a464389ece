"""Process host: wires the stores and the tool server lifecycle together."""

import logging
from typing import Optional

from mcp_manager.config.store import ConfigStore
from mcp_manager.context import AppContext
from mcp_manager.errors import ConfigurationError
from mcp_manager.runtime.service import ServerLifecycleManager
from mcp_manager.server.tool_server import ToolServer
from mcp_manager.settings import Settings, SettingsStore

logger = logging.getLogger(__name__)


class ManagerHost:
    """Owns one :class:`AppContext` and every component built on it."""

    def __init__(self, ctx: Optional[AppContext] = None) -> None:
        self.ctx = ctx or AppContext.create()
        self.config_store = ConfigStore(self.ctx)
        self.settings_store = SettingsStore(self.ctx)
        self.tool_server = ToolServer(self.ctx, store=self.config_store)
        self.lifecycle = ServerLifecycleManager(self.ctx, tool_server=self.tool_server)

    async def startup(self, config_override: Optional[str] = None) -> Settings:
        """Load settings, prime the config cache, then auto-start if enabled.

        A broken config file is logged and left for the user to fix; it never
        prevents the host from coming up.
        """
        settings = await self.settings_store.load()
        if config_override:
            await self.config_store.use_path(config_override)
        try:
            await self.config_store.load(config_override)
        except ConfigurationError as e_cfg:
            logger.warning("Configuration not loaded at startup: %s", e_cfg)
        await self.lifecycle.auto_start()
        return settings

    async def shutdown(self) -> None:
        await self.lifecycle.aclose()
        logger.info("Host shut down.")
