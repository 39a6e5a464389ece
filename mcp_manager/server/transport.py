"""SSE transport handling for MCP connections."""

import logging
from typing import Awaitable, Callable

from mcp.server import Server as McpServer
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.server.sse import SseServerTransport
from starlette.requests import Request
from starlette.responses import Response

from mcp_manager.constants import SERVER_NAME, SERVER_VERSION

logger = logging.getLogger(__name__)

_INSTRUCTIONS = (
    "MCP Manager Server for managing Claude Desktop MCP servers. Use the available "
    "tools to list, add, update, delete, and manage MCP server configurations."
)


def make_sse_endpoint(
    mcp_server: McpServer, sse_transport: SseServerTransport
) -> Callable[[Request], Awaitable[Response]]:
    """Build the GET handler that runs one MCP session per event stream."""

    async def handle_sse(request: Request) -> Response:
        logger.debug("Received new SSE connection request (GET): %s", request.url)
        async with sse_transport.connect_sse(
            request.scope,
            request.receive,
            request._send,
        ) as (read_stream, write_stream):
            init_opts = InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=mcp_server.get_capabilities(NotificationOptions(), {}),
                instructions=_INSTRUCTIONS,
            )
            await mcp_server.run(read_stream, write_stream, init_opts)
        logger.debug("SSE connection closed: %s", request.url)
        return Response()

    return handle_sse
