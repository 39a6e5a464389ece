"""Process-wide application context.

One :class:`AppContext` is built at startup and handed to every component
constructor.  It is the only holder of shared mutable state; each piece
lives in its own independently locked cell.
"""

from dataclasses import dataclass, field
from typing import Optional

from mcp_manager.config.schema import Configuration
from mcp_manager.events import EventBroadcaster
from mcp_manager.paths import default_config_path, default_settings_path
from mcp_manager.runtime.cancellation import CancellationHandle
from mcp_manager.runtime.models import ServerRuntimeStatus
from mcp_manager.settings import Settings
from mcp_manager.state import OptionalSlot, SharedCell


@dataclass
class AppContext:
    settings_path: str = field(default_factory=default_settings_path)
    default_config_path: str = field(default_factory=default_config_path)

    config: SharedCell[Optional[Configuration]] = field(
        default_factory=lambda: SharedCell(None, name="config")
    )
    config_path: SharedCell[Optional[str]] = field(
        default_factory=lambda: SharedCell(None, name="config_path")
    )
    settings: SharedCell[Settings] = field(
        default_factory=lambda: SharedCell(Settings(), name="settings")
    )
    status: SharedCell[ServerRuntimeStatus] = field(
        default_factory=lambda: SharedCell(ServerRuntimeStatus.stopped(), name="status")
    )
    cancellation: OptionalSlot[CancellationHandle] = field(
        default_factory=lambda: OptionalSlot(name="cancellation")
    )
    events: EventBroadcaster = field(default_factory=EventBroadcaster)

    @classmethod
    def create(
        cls,
        settings_path: Optional[str] = None,
        config_path: Optional[str] = None,
    ) -> "AppContext":
        """Context with optional explicit file locations (CLI ``--settings``/``--config``)."""
        ctx = cls()
        if settings_path:
            ctx.settings_path = settings_path
        if config_path:
            ctx.default_config_path = config_path
        return ctx
