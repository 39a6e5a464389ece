"""Custom exception classes for MCP Manager."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mcp_manager.config.diagnostics import JsonErrorInfo


class ManagerBaseError(Exception):
    """Base class for all custom exceptions in MCP Manager."""

    pass


class ConfigurationError(ManagerBaseError):
    """Raised when loading, validating or saving the configuration file fails."""

    pass


class ConfigIOError(ConfigurationError):
    """Raised when the configuration file (or one of its backups) cannot be
    read, written or copied.  The OS message is folded into the text."""

    pass


class ConfigParseError(ConfigurationError):
    """
    Raised when the configuration file is not well-formed JSON.

    ``info`` carries the structured diagnosis (kind, position, suggestion
    and whether a backup is available).
    """

    def __init__(self, info: "JsonErrorInfo", path: Optional[str] = None):
        self.info = info
        self.path = path

        full_msg = info.message
        if info.line is not None and info.column is not None:
            full_msg += f" (line {info.line}, column {info.column})"
        if info.suggestion:
            full_msg += f". {info.suggestion}"
        super().__init__(full_msg)


class ConfigValidationError(ConfigurationError):
    """Raised when well-formed JSON violates the configuration rules."""

    pass


class ConfigSerializeError(ConfigurationError):
    """Raised when a configuration cannot be serialized to JSON."""

    pass


class PathNotSetError(ConfigurationError):
    """Raised when a save is attempted before any load resolved a path."""

    def __init__(self) -> None:
        super().__init__("Config path not set; load the configuration first")


class BackupCorruptedError(ConfigurationError):
    """Raised when the automatic backup exists but does not parse."""

    pass


class ServerNotFoundError(ManagerBaseError):
    """Raised when a named server is not present in the configuration."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Server '{name}' not found")


class SettingsError(ManagerBaseError):
    """Raised when the application settings cannot be written."""

    pass


class ToolServerError(ManagerBaseError):
    """
    Raised by the embedded tool server's serving task when it cannot
    bind or exits abnormally.
    """

    def __init__(self, message: str, port: Optional[int] = None, orig_exc: Optional[BaseException] = None):
        self.port = port
        self.orig_exc = orig_exc

        full_msg = "Tool server error"
        if port is not None:
            full_msg += f" (port: {port})"
        full_msg += f": {message}"
        if orig_exc is not None:
            full_msg += f" (original error: {type(orig_exc).__name__})"
        super().__init__(full_msg)
