"""Runtime state of the embedded tool server."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from mcp_manager.constants import DEFAULT_HOST


class ServerState(str, Enum):
    """Observable lifecycle states.  Starting is not separately visible."""

    STOPPED = "stopped"
    RUNNING = "running"


class ServerRuntimeStatus(BaseModel):
    """Point-in-time status snapshot; never persisted."""

    running: bool = False
    port: Optional[int] = None
    sse_path: Optional[str] = None
    url: Optional[str] = None

    @property
    def state(self) -> ServerState:
        return ServerState.RUNNING if self.running else ServerState.STOPPED

    @classmethod
    def stopped(cls) -> "ServerRuntimeStatus":
        return cls()

    @classmethod
    def running_on(cls, port: int, sse_path: str, host: str = DEFAULT_HOST) -> "ServerRuntimeStatus":
        return cls(
            running=True,
            port=port,
            sse_path=sse_path,
            url=f"http://{host}:{port}{sse_path}",
        )
