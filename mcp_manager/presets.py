"""Static catalog of ready-to-install MCP server templates."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from mcp_manager.config.schema import ServerEntry


class ServerKind(str, Enum):
    DOCKER = "docker"
    NPX = "npx"
    UVX = "uvx"
    UV = "uv"
    OTHER = "other"


class ServerType(BaseModel):
    """Launcher family of a server: a known kind, or ``other`` with its command."""

    model_config = ConfigDict(frozen=True)

    kind: ServerKind
    command: Optional[str] = None

    @classmethod
    def from_command(cls, command: str) -> "ServerType":
        try:
            kind = ServerKind(command.lower())
        except ValueError:
            return cls.other(command)
        if kind is ServerKind.OTHER:
            return cls.other(command)
        return cls(kind=kind)

    @classmethod
    def other(cls, command: str) -> "ServerType":
        return cls(kind=ServerKind.OTHER, command=command)

    @property
    def is_other(self) -> bool:
        return self.kind is ServerKind.OTHER

    def __str__(self) -> str:
        if self.kind is ServerKind.OTHER:
            return self.command or ""
        return self.kind.value


DOCKER = ServerType(kind=ServerKind.DOCKER)
NPX = ServerType(kind=ServerKind.NPX)
UVX = ServerType(kind=ServerKind.UVX)
UV = ServerType(kind=ServerKind.UV)


class ApiKeyRequirement(BaseModel):
    name: str
    description: str
    required: bool = True


class PresetServer(BaseModel):
    """One catalog entry.  Serialises with the GUI's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str
    category: str
    server_type: ServerType = Field(alias="serverType")
    command: str
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    api_keys: List[ApiKeyRequirement] = Field(default_factory=list, alias="apiKeys")
    requires_api_key: bool = Field(default=False, alias="requiresApiKey")

    @field_serializer("server_type")
    def _serialize_type(self, value: ServerType) -> str:
        return str(value)

    def validate_command_matches_type(self) -> bool:
        """True if the declared type agrees with ``command`` (``other`` always does)."""
        return self.server_type == ServerType.from_command(self.command) or self.server_type.is_other

    def to_entry(self, api_keys: Optional[Dict[str, str]] = None) -> ServerEntry:
        """Server entry for this preset, with *api_keys* merged into its env."""
        env = dict(self.env or {})
        env.update(api_keys or {})
        return ServerEntry.build(self.command, self.args, env)


class SanitizedPreset(BaseModel):
    """Catalog entry for remote clients: env key names, never values."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    category: str
    server_type: str = Field(alias="serverType")
    command: str
    args: List[str]
    env_keys: List[str]
    api_keys: List[ApiKeyRequirement] = Field(alias="apiKeys")
    requires_api_key: bool = Field(alias="requiresApiKey")

    @classmethod
    def from_preset(cls, preset: PresetServer) -> "SanitizedPreset":
        return cls(
            name=preset.name,
            description=preset.description,
            category=preset.category,
            server_type=str(preset.server_type),
            command=preset.command,
            args=list(preset.args),
            env_keys=sorted((preset.env or {}).keys()),
            api_keys=list(preset.api_keys),
            requires_api_key=preset.requires_api_key,
        )


# ── Catalog ──────────────────────────────────────────────────────────────

PRESET_CATALOG: List[PresetServer] = [
    PresetServer(
        name="dice",
        description="Random dice rolling utility for games and decision making",
        category="Utilities",
        server_type=UVX,
        command="uvx",
        args=["mcp-dice"],
    ),
    PresetServer(
        name="time",
        description="Time and timezone utilities for scheduling and time management",
        category="Utilities",
        server_type=UVX,
        command="uvx",
        args=["mcp-server-time", "--local-timezone=UTC"],
    ),
    PresetServer(
        name="sequential-thinking",
        description="Enhanced reasoning capabilities for complex problem solving",
        category="AI Tools",
        server_type=DOCKER,
        command="docker",
        args=["run", "--rm", "-i", "mcp/sequentialthinking"],
    ),
    PresetServer(
        name="browsermcp",
        description="Web browsing capabilities for accessing and interacting with websites",
        category="Web Tools",
        server_type=NPX,
        command="npx",
        args=["@browsermcp/mcp@latest"],
    ),
    PresetServer(
        name="brave-search",
        description="Web search functionality using Brave Search API",
        category="Search",
        server_type=NPX,
        command="npx",
        args=["-y", "@modelcontextprotocol/server-brave-search"],
        api_keys=[
            ApiKeyRequirement(
                name="BRAVE_API_KEY",
                description="Get your API key from https://brave.com/search/api/",
            )
        ],
        requires_api_key=True,
    ),
    PresetServer(
        name="openweather",
        description="Weather information and forecasts using OpenWeatherMap API",
        category="Weather",
        server_type=DOCKER,
        command="docker",
        args=["run", "-i", "--rm", "-e", "OWM_API_KEY", "mcp/openweather"],
        api_keys=[
            ApiKeyRequirement(
                name="OWM_API_KEY",
                description="Get your API key from https://openweathermap.org/api",
            )
        ],
        requires_api_key=True,
    ),
    PresetServer(
        name="context7",
        description="Documentation search and code context analysis",
        category="Development",
        server_type=NPX,
        command="npx",
        args=["-y", "@upstash/context7-mcp@latest"],
    ),
    PresetServer(
        name="docker",
        description="Docker container management and operations",
        category="Development",
        server_type=UVX,
        command="uvx",
        args=["--from", "git+https://github.com/ckreiling/mcp-server-docker", "mcp-server-docker"],
    ),
    PresetServer(
        name="desktop-commander",
        description="Desktop automation and system control capabilities",
        category="System",
        server_type=DOCKER,
        command="docker",
        args=["run", "-i", "--rm", "mcp/desktop-commander"],
    ),
    PresetServer(
        name="mcp-manager",
        description="control mcp manager using ai",
        category="Development",
        server_type=NPX,
        command="npx",
        args=["-y", "supergateway", "--sse", "http://localhost:8000/sse"],
    ),
]


# ── Lookups ──────────────────────────────────────────────────────────────


def all_presets() -> List[PresetServer]:
    return list(PRESET_CATALOG)


def presets_by_category(category: str) -> List[PresetServer]:
    return [p for p in PRESET_CATALOG if p.category == category]


def categories() -> List[str]:
    return sorted({p.category for p in PRESET_CATALOG})


def preset_by_name(name: str) -> Optional[PresetServer]:
    for preset in PRESET_CATALOG:
        if preset.name == name:
            return preset
    return None


def presets_by_type(server_type: str) -> List[PresetServer]:
    wanted = ServerType.from_command(server_type)
    return [p for p in PRESET_CATALOG if p.server_type == wanted]


def server_types() -> List[str]:
    return sorted({str(p.server_type) for p in PRESET_CATALOG})
