"""Tests for ManagerHost startup/shutdown."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import free_port, write_json

from mcp_manager.context import AppContext
from mcp_manager.host import ManagerHost


@pytest.mark.asyncio
class TestManagerHost:
    async def test_disabled_server_stays_stopped(self, ctx: AppContext) -> None:
        host = ManagerHost(ctx)
        settings = await host.startup()
        assert settings.server_enabled is False
        assert not (await host.lifecycle.status()).running
        assert await host.config_store.cached() is not None
        await host.shutdown()

    async def test_broken_config_does_not_block_startup(
        self, ctx: AppContext, config_file: Path
    ) -> None:
        config_file.write_text("{", encoding="utf-8")
        host = ManagerHost(ctx)
        await host.startup()
        assert await host.config_store.cached() is None
        await host.shutdown()

    async def test_auto_start_and_shutdown(self, ctx: AppContext) -> None:
        port = free_port()
        Path(ctx.settings_path).parent.mkdir(parents=True, exist_ok=True)
        write_json(Path(ctx.settings_path), {"mcpServerEnabled": True, "mcpServerPort": port})
        host = ManagerHost(ctx)

        await host.startup()
        status = await host.lifecycle.status()
        assert status.running and status.port == port

        await host.shutdown()
        assert not (await host.lifecycle.status()).running
