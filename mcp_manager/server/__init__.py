"""Network-facing MCP tool server (SSE transport)."""

from mcp_manager.server.app import create_app
from mcp_manager.server.tool_server import ToolServer
from mcp_manager.server.tools import TOOL_SPECS, ManagerTools

__all__ = ["ManagerTools", "TOOL_SPECS", "ToolServer", "create_app"]
