"""Start/stop/status of the embedded tool server.

State machine::

    STOPPED ─► (starting) ─► RUNNING ─► STOPPED
                                │
                                └──► STOPPED  (serving task failed)

``start()`` returns once the serving task has been spawned, not once the
listener accepts connections.  ``stop()`` only signals cancellation; the
task may still be unwinding when the status already reads stopped.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from mcp_manager.constants import DEFAULT_HOST, EVENT_SERVER_STATUS, TASK_JOIN_TIMEOUT
from mcp_manager.outcome import Outcome, OutcomeKind
from mcp_manager.runtime.cancellation import CancellationHandle
from mcp_manager.runtime.models import ServerRuntimeStatus
from mcp_manager.runtime.ports import probe_port, validate_port

if TYPE_CHECKING:
    from mcp_manager.context import AppContext
    from mcp_manager.server.tool_server import ToolServer

logger = logging.getLogger(__name__)


class ServerLifecycleManager:
    """Owns the cancellation handle and runtime status of the tool server."""

    def __init__(
        self,
        ctx: "AppContext",
        tool_server: Optional["ToolServer"] = None,
        host: str = DEFAULT_HOST,
    ) -> None:
        if tool_server is None:
            from mcp_manager.server.tool_server import ToolServer

            tool_server = ToolServer(ctx, host=host)
        self._ctx = ctx
        self._tool_server = tool_server
        self._host = host
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def task(self) -> Optional["asyncio.Task[None]"]:
        return self._task

    # ── Commands ─────────────────────────────────────────────────────

    async def start(self) -> Outcome:
        settings = await self._ctx.settings.get()
        if not settings.server_enabled:
            return Outcome.fail(OutcomeKind.DISABLED, "MCP server is disabled in settings")

        port, sse_path = settings.server_port, settings.sse_path
        async with self._ctx.status.write() as status:
            if status.value.running:
                return Outcome.fail(OutcomeKind.ALREADY_RUNNING, "MCP server is already running")
            if not probe_port(port, self._host):
                return Outcome.fail(
                    OutcomeKind.PORT_UNAVAILABLE, f"Port {port} is already in use", port=port
                )

            handle = CancellationHandle()
            await self._ctx.cancellation.set(handle)
            status.value = ServerRuntimeStatus.running_on(port, sse_path, self._host)
            snapshot = status.value.model_copy()
            self._task = asyncio.create_task(
                self._supervise(handle, port, sse_path), name=f"mcp-tool-server-{port}"
            )

        logger.info("MCP server starting on %s", snapshot.url)
        self._publish(snapshot)
        return Outcome.ok(f"MCP server started on port {port}", port=port, url=snapshot.url)

    async def stop(self) -> Outcome:
        # Same lock order as _reset_if_current: status, then cancellation.
        async with self._ctx.status.write() as status:
            handle = await self._ctx.cancellation.take()
            if handle is not None:
                handle.cancel()
                logger.info("MCP server stop requested.")
            status.value = ServerRuntimeStatus.stopped()
            stopped = status.value.model_copy()
        self._publish(stopped)
        return Outcome.ok("MCP server stopped")

    async def status(self) -> ServerRuntimeStatus:
        async with self._ctx.status.read() as status:
            return status.model_copy()

    @staticmethod
    def validate_port(port: int) -> Outcome:
        return validate_port(port)

    async def auto_start(self) -> Optional[Outcome]:
        """Start the server if settings enable it; problems are only logged."""
        settings = await self._ctx.settings.get()
        if not settings.server_enabled:
            logger.debug("MCP server auto-start skipped (disabled in settings).")
            return None
        outcome = await self.start()
        if outcome:
            logger.info("MCP server auto-started: %s", outcome.message)
        else:
            logger.warning("MCP server auto-start failed: %s", outcome.message)
        return outcome

    async def aclose(self) -> None:
        """Stop the server and wait (bounded) for the serving task to finish."""
        await self.stop()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(task, timeout=TASK_JOIN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("MCP server task did not finish within %.1fs; cancelled.", TASK_JOIN_TIMEOUT)

    # ── Supervision ──────────────────────────────────────────────────

    async def _supervise(self, handle: CancellationHandle, port: int, sse_path: str) -> None:
        try:
            await self._tool_server.serve(port, sse_path, handle)
        except asyncio.CancelledError:
            await self._reset_if_current(handle)
            raise
        except Exception as e_serve:
            # task boundary: the host process must survive any server failure
            logger.error("MCP server error on port %s: %s", port, e_serve, exc_info=True)
            await self._reset_if_current(handle)
        else:
            await self._reset_if_current(handle)

    async def _reset_if_current(self, handle: CancellationHandle) -> None:
        async with self._ctx.status.write() as status:
            async with self._ctx.cancellation.write() as slot:
                if slot.value is not handle:
                    return
                slot.value = None
            status.value = ServerRuntimeStatus.stopped()
            snapshot = status.value.model_copy()
        logger.info("MCP server status reset to stopped.")
        self._publish(snapshot)

    def _publish(self, status: ServerRuntimeStatus) -> None:
        self._ctx.events.emit(EVENT_SERVER_STATUS, status.model_dump())
