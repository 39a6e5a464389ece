"""Starlette ASGI application factory for the embedded tool server."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server import Server as McpServer
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.routing import Mount, Route

from mcp_manager.constants import POST_MESSAGES_PATH, SERVER_NAME, SSE_PATH
from mcp_manager.server.handlers import register_handlers
from mcp_manager.server.tools import ManagerTools
from mcp_manager.server.transport import make_sse_endpoint

logger = logging.getLogger(__name__)


def create_mcp_server(tools: ManagerTools) -> McpServer:
    mcp_server = McpServer(SERVER_NAME)
    register_handlers(mcp_server, tools)
    logger.debug("Underlying MCP server instance '%s' created.", mcp_server.name)
    return mcp_server


@asynccontextmanager
async def app_lifespan(app: Starlette) -> AsyncIterator[None]:
    logger.info("Tool server application starting up.")
    try:
        yield
    finally:
        logger.info("Tool server application shut down.")


def create_app(tools: ManagerTools, sse_path: str = SSE_PATH) -> Starlette:
    """Create and return the Starlette ASGI application."""
    mcp_server = create_mcp_server(tools)
    sse_transport = SseServerTransport(POST_MESSAGES_PATH)
    application = Starlette(
        lifespan=app_lifespan,
        routes=[
            Route(sse_path, endpoint=make_sse_endpoint(mcp_server, sse_transport)),
            Mount(POST_MESSAGES_PATH, app=sse_transport.handle_post_message),
        ],
    )
    application.state.mcp_server = mcp_server
    logger.info(
        "Starlette ASGI app '%s' created. SSE GET on %s, POST on %s",
        SERVER_NAME,
        sse_path,
        POST_MESSAGES_PATH,
    )
    return application
