"""Pydantic models for the Claude Desktop configuration file.

Only the ``mcpServers`` mapping is interpreted.  Any other top-level key and
any extra per-server key is kept as-is so that a load/save cycle does not
lose information the manager does not understand.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mcp_manager.errors import ConfigValidationError


class ServerEntry(BaseModel):
    """One managed MCP server process definition."""

    model_config = ConfigDict(extra="allow")

    command: str = Field(..., description="Executable to run")
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None

    @classmethod
    def build(
        cls,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "ServerEntry":
        """Create an entry, storing an empty environment as absent."""
        return cls(command=command, args=list(args or []), env=dict(env) if env else None)

    @property
    def env_keys(self) -> List[str]:
        return sorted((self.env or {}).keys())


class Configuration(BaseModel):
    """Top-level config file: server name → :class:`ServerEntry`."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    servers: Dict[str, ServerEntry] = Field(default_factory=dict, alias="mcpServers")

    def to_json_dict(self) -> Dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ServerInfo(BaseModel):
    """Flattened, named view of an entry as returned by list/details."""

    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, name: str, entry: ServerEntry) -> "ServerInfo":
        return cls(name=name, command=entry.command, args=list(entry.args), env=dict(entry.env or {}))


class SanitizedServer(BaseModel):
    """Server view for remote clients: environment key names, never values."""

    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env_keys: List[str] = Field(default_factory=list)

    @classmethod
    def from_info(cls, info: ServerInfo) -> "SanitizedServer":
        return cls(
            name=info.name,
            command=info.command,
            args=list(info.args),
            env_keys=sorted(info.env.keys()),
        )


def validate_structure(config: Configuration) -> None:
    """Check the domain rules pydantic cannot express.

    Raises :class:`ConfigValidationError` on the first violation.
    """
    for name, server in config.servers.items():
        if not name.strip():
            raise ConfigValidationError("Server name cannot be empty")

        if not server.command.strip():
            raise ConfigValidationError(f"Server '{name}' has an empty command")

        if " " in server.command and not server.command.startswith('"'):
            raise ConfigValidationError(
                f"Server '{name}' command contains spaces but is not quoted. "
                "Consider moving arguments to the 'args' array"
            )
