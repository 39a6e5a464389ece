"""Runtime layer for the embedded tool server.

Re-exports the key symbols so callers can write::

    from mcp_manager.runtime import ServerLifecycleManager, ServerRuntimeStatus
"""

from mcp_manager.runtime.cancellation import CancellationHandle
from mcp_manager.runtime.models import ServerRuntimeStatus, ServerState
from mcp_manager.runtime.ports import probe_port, validate_port
from mcp_manager.runtime.service import ServerLifecycleManager

__all__ = [
    "CancellationHandle",
    "ServerLifecycleManager",
    "ServerRuntimeStatus",
    "ServerState",
    "probe_port",
    "validate_port",
]
