"""MCP handler functions - registered on the MCP server instance."""

import json
import logging
from typing import Any, Dict, List

from mcp import types as mcp_types
from mcp.server import Server as McpServer

from mcp_manager.server.tools import ManagerTools

logger = logging.getLogger(__name__)


def register_handlers(mcp_server: McpServer, tools: ManagerTools) -> None:
    """Register the tool handlers on the server instance."""

    @mcp_server.list_tools()
    async def handle_list_tools() -> List[mcp_types.Tool]:
        logger.debug("Handling listTools request...")
        result = tools.list_tools()
        logger.info("Returning %s tools", len(result))
        return result

    @mcp_server.call_tool()
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[mcp_types.TextContent]:
        logger.debug("Handling callTool: name='%s'", name)
        result = await tools.call(name, arguments)
        return [mcp_types.TextContent(type="text", text=json.dumps(result, indent=2))]
