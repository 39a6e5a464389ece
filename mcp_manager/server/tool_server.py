"""Embedded uvicorn server hosting the MCP tool endpoint."""

import asyncio
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

import uvicorn

from mcp_manager.config.store import ConfigStore
from mcp_manager.constants import DEFAULT_HOST, SHUTDOWN_GRACE_SECONDS
from mcp_manager.errors import ToolServerError
from mcp_manager.runtime.cancellation import CancellationHandle
from mcp_manager.server.app import create_app
from mcp_manager.server.tools import ManagerTools

if TYPE_CHECKING:
    from mcp_manager.context import AppContext

logger = logging.getLogger(__name__)


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the host."""

    def install_signal_handlers(self) -> None:
        pass

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class ToolServer:
    """Serves the manager tools over SSE until its cancellation handle fires."""

    def __init__(
        self,
        ctx: "AppContext",
        store: Optional[ConfigStore] = None,
        host: str = DEFAULT_HOST,
    ) -> None:
        self._ctx = ctx
        self.host = host
        self.tools = ManagerTools(store or ConfigStore(ctx))

    def build_server(self, port: int, sse_path: str) -> uvicorn.Server:
        app = create_app(self.tools, sse_path)
        uvicorn_cfg = uvicorn.Config(
            app,
            host=self.host,
            port=port,
            log_config=None,
            log_level="warning",
            timeout_graceful_shutdown=SHUTDOWN_GRACE_SECONDS,
        )
        return _EmbeddedServer(uvicorn_cfg)

    async def serve(self, port: int, sse_path: str, handle: CancellationHandle) -> None:
        """Run until *handle* is cancelled.

        Raises :class:`ToolServerError` if the listener cannot be bound or
        the server exits without having been asked to.
        """
        server = self.build_server(port, sse_path)
        watcher = asyncio.create_task(self._watch(handle, server))
        logger.info("Tool server listening on http://%s:%s%s", self.host, port, sse_path)
        try:
            await server.serve()
        except SystemExit as e_exit:
            # uvicorn exits the process on bind errors
            raise ToolServerError("Failed to start listener", port=port, orig_exc=e_exit) from e_exit
        finally:
            watcher.cancel()

        if not server.started and not handle.cancelled:
            raise ToolServerError("Server exited before it started", port=port)
        if not handle.cancelled:
            raise ToolServerError("Server exited unexpectedly", port=port)
        logger.info("Tool server on port %s has shut down.", port)

    @staticmethod
    async def _watch(handle: CancellationHandle, server: uvicorn.Server) -> None:
        await handle.wait()
        logger.debug("Cancellation received; asking tool server to exit.")
        server.should_exit = True
