"""Tool catalog exposed to remote MCP clients.

Every tool returns a plain JSON-able dict.  Failures from the config store
are folded into the dict (``error`` key) instead of failing the protocol
call, and no environment value ever leaves this module: entries are always
converted to their sanitized form (key names only) first.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from mcp import types as mcp_types
from pydantic import BaseModel, Field, ValidationError

from mcp_manager.config.schema import SanitizedServer, ServerEntry
from mcp_manager.config.store import ConfigStore
from mcp_manager.errors import ConfigParseError, ManagerBaseError
from mcp_manager.outcome import Outcome
from mcp_manager.presets import SanitizedPreset, all_presets, preset_by_name

logger = logging.getLogger(__name__)

# ── Request models (input schemas) ───────────────────────────────────────


class NoArguments(BaseModel):
    pass


class ServerRequest(BaseModel):
    name: str = Field(..., description="Name of the MCP server")
    command: str = Field(..., description="Command to execute the server")
    args: List[str] = Field(default_factory=list, description="Arguments to pass to the command")
    env: Optional[Dict[str, str]] = Field(
        default=None, description="Environment variables for the server"
    )

    def to_entry(self) -> ServerEntry:
        return ServerEntry.build(self.command, self.args, self.env)


class ServerNameRequest(BaseModel):
    name: str = Field(..., description="Name of the MCP server")


class PresetFilterRequest(BaseModel):
    exclude_installed: bool = Field(
        default=False, description="Filter out already installed servers (default: false)"
    )


class InstallPresetRequest(BaseModel):
    preset_name: str = Field(..., description="Name of the preset server to install")
    api_keys: Optional[Dict[str, str]] = Field(
        default=None, description="API keys required for the preset server"
    )


class ToolSpec(BaseModel):
    name: str
    description: str
    request_model: Type[BaseModel]

    def to_mcp_tool(self) -> mcp_types.Tool:
        return mcp_types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.request_model.model_json_schema(),
        )


TOOL_SPECS: List[ToolSpec] = [
    ToolSpec(
        name="list_mcp_servers",
        description="List all configured MCP servers in Claude Desktop",
        request_model=NoArguments,
    ),
    ToolSpec(
        name="add_mcp_server",
        description="Add a new MCP server to Claude Desktop configuration",
        request_model=ServerRequest,
    ),
    ToolSpec(
        name="update_mcp_server",
        description="Update an existing MCP server configuration",
        request_model=ServerRequest,
    ),
    ToolSpec(
        name="delete_mcp_server",
        description="Delete an MCP server from Claude Desktop configuration",
        request_model=ServerNameRequest,
    ),
    ToolSpec(
        name="get_mcp_server_details",
        description="Get detailed information about a specific MCP server",
        request_model=ServerNameRequest,
    ),
    ToolSpec(
        name="get_preset_servers",
        description="Get a list of all available preset MCP servers that can be installed",
        request_model=NoArguments,
    ),
    ToolSpec(
        name="get_preset_servers_filtered",
        description="Get available preset MCP servers with option to exclude already installed ones",
        request_model=PresetFilterRequest,
    ),
    ToolSpec(
        name="install_preset_server",
        description="Install a preset MCP server with optional API keys",
        request_model=InstallPresetRequest,
    ),
]


def _error_result(prefix: str, exc: ManagerBaseError, **extra: Any) -> Dict[str, Any]:
    result: Dict[str, Any] = dict(extra)
    result["error"] = f"{prefix}: {exc}"
    if isinstance(exc, ConfigParseError):
        result["diagnosis"] = exc.info.model_dump()
    return result


def _mutation_result(outcome: Outcome, server_name: str, **extra: Any) -> Dict[str, Any]:
    if not outcome.success:
        return {"success": False, "error": outcome.message}
    return {"success": True, "message": outcome.message, "server_name": server_name, **extra}


def _sanitized_presets(presets: List[Any]) -> List[Dict[str, Any]]:
    return [SanitizedPreset.from_preset(p).model_dump(by_alias=True) for p in presets]


class ManagerTools:
    """Implements the tool calls on top of a :class:`ConfigStore`."""

    def __init__(self, store: ConfigStore) -> None:
        self._store = store
        self._handlers: Dict[str, Callable[[Any], Awaitable[Dict[str, Any]]]] = {
            "list_mcp_servers": self.list_mcp_servers,
            "add_mcp_server": self.add_mcp_server,
            "update_mcp_server": self.update_mcp_server,
            "delete_mcp_server": self.delete_mcp_server,
            "get_mcp_server_details": self.get_mcp_server_details,
            "get_preset_servers": self.get_preset_servers,
            "get_preset_servers_filtered": self.get_preset_servers_filtered,
            "install_preset_server": self.install_preset_server,
        }
        self._specs = {spec.name: spec for spec in TOOL_SPECS}

    def list_tools(self) -> List[mcp_types.Tool]:
        return [spec.to_mcp_tool() for spec in TOOL_SPECS]

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Validate *arguments* against the tool's request model and run it."""
        spec = self._specs.get(name)
        if spec is None:
            logger.warning("Unknown tool requested: '%s'", name)
            return {"error": f"Unknown tool '{name}'"}
        try:
            request = spec.request_model.model_validate(arguments or {})
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '(root)'}: {err['msg']}"
                for err in exc.errors()
            )
            return {"error": f"Invalid arguments for '{name}': {problems}"}
        logger.info("Tool call '%s'", name)
        return await self._handlers[name](request)

    # ── Servers ──────────────────────────────────────────────────────

    async def list_mcp_servers(self, _request: Any = None) -> Dict[str, Any]:
        try:
            servers = await self._store.list_servers()
        except ManagerBaseError as exc:
            return _error_result("Failed to list MCP servers", exc)
        sanitized = [SanitizedServer.from_info(s).model_dump() for s in servers]
        return {"servers": sanitized, "total_count": len(sanitized)}

    async def get_mcp_server_details(self, request: ServerNameRequest) -> Dict[str, Any]:
        try:
            info = await self._store.get_server_details(request.name)
        except ManagerBaseError as exc:
            return _error_result("Failed to get server details", exc)
        return {"server": SanitizedServer.from_info(info).model_dump(), "name": request.name}

    async def add_mcp_server(self, request: ServerRequest) -> Dict[str, Any]:
        try:
            outcome = await self._store.add_server(request.name, request.to_entry())
        except ManagerBaseError as exc:
            return _error_result("Failed to add MCP server", exc, success=False)
        return _mutation_result(outcome, request.name)

    async def update_mcp_server(self, request: ServerRequest) -> Dict[str, Any]:
        try:
            outcome = await self._store.update_server(request.name, request.to_entry())
        except ManagerBaseError as exc:
            return _error_result("Failed to update MCP server", exc, success=False)
        return _mutation_result(outcome, request.name)

    async def delete_mcp_server(self, request: ServerNameRequest) -> Dict[str, Any]:
        try:
            outcome = await self._store.delete_server(request.name)
        except ManagerBaseError as exc:
            return _error_result("Failed to delete MCP server", exc, success=False)
        return _mutation_result(outcome, request.name)

    # ── Presets ──────────────────────────────────────────────────────

    async def get_preset_servers(self, _request: Any = None) -> Dict[str, Any]:
        presets = _sanitized_presets(all_presets())
        return {"preset_servers": presets, "total_count": len(presets)}

    async def get_preset_servers_filtered(self, request: PresetFilterRequest) -> Dict[str, Any]:
        presets = all_presets()
        if request.exclude_installed:
            try:
                installed = {s.name for s in await self._store.list_servers()}
            except ManagerBaseError as exc:
                logger.warning("Could not load installed servers, returning all presets: %s", exc)
            else:
                presets = [p for p in presets if p.name not in installed]
        sanitized = _sanitized_presets(presets)
        return {
            "preset_servers": sanitized,
            "total_count": len(sanitized),
            "excluded_installed": request.exclude_installed,
            "total_available": len(all_presets()),
        }

    async def install_preset_server(self, request: InstallPresetRequest) -> Dict[str, Any]:
        preset = preset_by_name(request.preset_name)
        if preset is None:
            return {"success": False, "error": f"Preset server '{request.preset_name}' not found"}
        try:
            outcome = await self._store.add_server(preset.name, preset.to_entry(request.api_keys))
        except ManagerBaseError as exc:
            return _error_result("Failed to install preset server", exc, success=False)
        return _mutation_result(outcome, preset.name, preset_name=request.preset_name)
