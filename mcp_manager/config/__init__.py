"""Configuration file handling for MCP Manager."""

from mcp_manager.config.diagnostics import JsonErrorInfo, analyze_json_error
from mcp_manager.config.schema import (
    Configuration,
    SanitizedServer,
    ServerEntry,
    ServerInfo,
    validate_structure,
)
from mcp_manager.config.store import BackupInfo, ConfigStore, backup_path_for

__all__ = [
    "BackupInfo",
    "ConfigStore",
    "Configuration",
    "JsonErrorInfo",
    "SanitizedServer",
    "ServerEntry",
    "ServerInfo",
    "analyze_json_error",
    "backup_path_for",
    "validate_structure",
]
