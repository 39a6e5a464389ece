"""Tests for the remote tool catalog: result shapes and env sanitization."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest
from conftest import SECRET

from mcp_manager.config import ConfigStore
from mcp_manager.context import AppContext
from mcp_manager.server.tools import TOOL_SPECS, ManagerTools


@pytest.fixture
def tools(ctx: AppContext) -> ManagerTools:
    return ManagerTools(ConfigStore(ctx))


def _servers_on_disk(config_file: Path) -> Dict[str, Any]:
    return json.loads(config_file.read_text(encoding="utf-8"))["mcpServers"]


class TestCatalog:
    def test_tool_names(self, tools: ManagerTools) -> None:
        assert [t.name for t in tools.list_tools()] == [
            "list_mcp_servers",
            "add_mcp_server",
            "update_mcp_server",
            "delete_mcp_server",
            "get_mcp_server_details",
            "get_preset_servers",
            "get_preset_servers_filtered",
            "install_preset_server",
        ]

    def test_input_schemas(self) -> None:
        schemas = {spec.name: spec.request_model.model_json_schema() for spec in TOOL_SPECS}
        add = schemas["add_mcp_server"]
        assert add["type"] == "object"
        assert set(add["required"]) == {"name", "command"}
        assert schemas["install_preset_server"]["required"] == ["preset_name"]
        assert "required" not in schemas["get_preset_servers_filtered"]


@pytest.mark.asyncio
class TestServerTools:
    async def test_list_is_sanitized_and_sorted(self, tools: ManagerTools) -> None:
        result = await tools.call("list_mcp_servers", {})
        assert result["total_count"] == 2
        assert [s["name"] for s in result["servers"]] == ["alpha", "zeta"]
        assert result["servers"][0]["env_keys"] == ["API_KEY"]
        assert "env" not in result["servers"][0]
        assert SECRET not in json.dumps(result)

    async def test_details_sanitized(self, tools: ManagerTools) -> None:
        result = await tools.call("get_mcp_server_details", {"name": "alpha"})
        assert result["name"] == "alpha"
        assert result["server"]["env_keys"] == ["API_KEY"]
        assert SECRET not in json.dumps(result)

    async def test_details_missing(self, tools: ManagerTools) -> None:
        result = await tools.call("get_mcp_server_details", {"name": "ghost"})
        assert result == {"error": "Failed to get server details: Server 'ghost' not found"}

    async def test_add(self, tools: ManagerTools, config_file: Path) -> None:
        token = "tok-abcdef-123456"
        result = await tools.call(
            "add_mcp_server",
            {"name": "beta", "command": "npx", "args": ["-y", "beta"], "env": {"TOKEN": token}},
        )
        assert result == {
            "success": True,
            "message": "Server 'beta' added successfully",
            "server_name": "beta",
        }
        assert _servers_on_disk(config_file)["beta"]["env"] == {"TOKEN": token}

    async def test_add_existing(self, tools: ManagerTools) -> None:
        result = await tools.call("add_mcp_server", {"name": "alpha", "command": "npx"})
        assert result == {"success": False, "error": "Server 'alpha' already exists"}

    async def test_add_invalid_command(self, tools: ManagerTools) -> None:
        result = await tools.call("add_mcp_server", {"name": "beta", "command": "npx -y beta"})
        assert result["success"] is False
        assert result["error"].startswith("Failed to add MCP server: ")

    async def test_update_overwrites(self, tools: ManagerTools, config_file: Path) -> None:
        result = await tools.call(
            "update_mcp_server", {"name": "zeta", "command": "uvx", "args": ["zeta2"]}
        )
        assert result["success"] is True
        assert _servers_on_disk(config_file)["zeta"] == {"command": "uvx", "args": ["zeta2"]}

    async def test_delete(self, tools: ManagerTools, config_file: Path) -> None:
        result = await tools.call("delete_mcp_server", {"name": "zeta"})
        assert result["success"] is True
        assert "zeta" not in _servers_on_disk(config_file)

    async def test_delete_missing(self, tools: ManagerTools) -> None:
        result = await tools.call("delete_mcp_server", {"name": "ghost"})
        assert result == {"success": False, "error": "Server 'ghost' not found"}

    async def test_bad_arguments(self, tools: ManagerTools) -> None:
        result = await tools.call("delete_mcp_server", {})
        assert result["error"].startswith("Invalid arguments for 'delete_mcp_server'")

    async def test_unknown_tool(self, tools: ManagerTools) -> None:
        assert await tools.call("format_disk") == {"error": "Unknown tool 'format_disk'"}

    async def test_parse_error_carries_diagnosis(
        self, tools: ManagerTools, config_file: Path
    ) -> None:
        config_file.write_text('{"mcpServers": {', encoding="utf-8")
        result = await tools.call("list_mcp_servers")
        assert result["error"].startswith("Failed to list MCP servers: ")
        assert result["diagnosis"]["error_type"] == "incomplete"


@pytest.mark.asyncio
class TestPresetTools:
    async def test_presets(self, tools: ManagerTools) -> None:
        result = await tools.call("get_preset_servers")
        assert result["total_count"] == 10
        brave = next(p for p in result["preset_servers"] if p["name"] == "brave-search")
        assert brave["serverType"] == "npx"
        assert brave["requiresApiKey"] is True
        assert brave["apiKeys"][0]["name"] == "BRAVE_API_KEY"
        assert brave["env_keys"] == []

    async def test_filtered_excludes_installed(self, tools: ManagerTools) -> None:
        await tools.call("install_preset_server", {"preset_name": "dice"})
        result = await tools.call("get_preset_servers_filtered", {"exclude_installed": True})
        names = [p["name"] for p in result["preset_servers"]]
        assert "dice" not in names
        assert result["total_count"] == 9
        assert result["total_available"] == 10
        assert result["excluded_installed"] is True

    async def test_filtered_falls_back_when_config_broken(
        self, tools: ManagerTools, config_file: Path
    ) -> None:
        config_file.write_text("not json", encoding="utf-8")
        result = await tools.call("get_preset_servers_filtered", {"exclude_installed": True})
        assert result["total_count"] == 10

    async def test_install_merges_api_keys(self, tools: ManagerTools, config_file: Path) -> None:
        key = "brave-secret-key-42"
        result = await tools.call(
            "install_preset_server",
            {"preset_name": "brave-search", "api_keys": {"BRAVE_API_KEY": key}},
        )
        assert result["success"] is True
        assert result["server_name"] == "brave-search"
        assert result["preset_name"] == "brave-search"
        assert key not in json.dumps(result)
        entry = _servers_on_disk(config_file)["brave-search"]
        assert entry["command"] == "npx"
        assert entry["env"] == {"BRAVE_API_KEY": key}

        listed = await tools.call("list_mcp_servers")
        assert key not in json.dumps(listed)

    async def test_install_unknown(self, tools: ManagerTools) -> None:
        result = await tools.call("install_preset_server", {"preset_name": "nope"})
        assert result == {"success": False, "error": "Preset server 'nope' not found"}

    async def test_install_twice(self, tools: ManagerTools) -> None:
        await tools.call("install_preset_server", {"preset_name": "time"})
        result = await tools.call("install_preset_server", {"preset_name": "time"})
        assert result == {"success": False, "error": "Server 'time' already exists"}
