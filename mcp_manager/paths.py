"""Platform-specific default locations for the config and settings files."""

import os
import sys

from mcp_manager.constants import APP_DIR_NAME, CONFIG_PATH_ENV, LOG_DIR_NAME, SETTINGS_PATH_ENV

_CLAUDE_DIR_NAME = "Claude"
_CLAUDE_CONFIG_FILE = "claude_desktop_config.json"
_SETTINGS_FILE = "settings.json"


def _user_config_root() -> str:
    """Per-user configuration root for the current platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return appdata
        return os.path.join(os.path.expanduser("~"), "AppData", "Roaming")
    if sys.platform == "darwin":
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    return os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")


def default_config_path() -> str:
    """Location of the Claude Desktop config file.

    ``MCP_MANAGER_CONFIG`` overrides the platform default.
    """
    override = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if override:
        return override
    return os.path.join(_user_config_root(), _CLAUDE_DIR_NAME, _CLAUDE_CONFIG_FILE)


def app_data_dir() -> str:
    return os.path.join(_user_config_root(), APP_DIR_NAME)


def default_settings_path() -> str:
    """Location of the application settings file.

    ``MCP_MANAGER_SETTINGS`` overrides the platform default.
    """
    override = os.environ.get(SETTINGS_PATH_ENV, "").strip()
    if override:
        return override
    return os.path.join(app_data_dir(), _SETTINGS_FILE)


def default_log_dir() -> str:
    return os.path.join(app_data_dir(), LOG_DIR_NAME)
