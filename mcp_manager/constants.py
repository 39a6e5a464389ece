"""Shared constants for MCP Manager."""

SERVER_NAME = "MCP Manager"
SERVER_VERSION = "0.1.0"
APP_DIR_NAME = "mcp-manager"

# Network defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
MIN_PORT = 1024
MAX_PORT = 65535

# SSE transport paths
SSE_PATH = "/sse"
POST_MESSAGES_PATH = "/messages/"

# Seconds the embedded server waits for open streams after cancellation
SHUTDOWN_GRACE_SECONDS = 5
# Seconds the host waits for the serving task when closing
TASK_JOIN_TIMEOUT = 10.0

# Backup naming (appended to the config file path)
BACKUP_SUFFIX = ".backup"
BROKEN_SUFFIX = ".broken"
MANUAL_BACKUP_INFIX = ".manual_backup_"

# Environment overrides
SETTINGS_PATH_ENV = "MCP_MANAGER_SETTINGS"
CONFIG_PATH_ENV = "MCP_MANAGER_CONFIG"

# Logging defaults
LOG_DIR_NAME = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Event names published to the GUI side
EVENT_SERVER_ADDED = "server-added"
EVENT_SERVER_UPDATED = "server-updated"
EVENT_SERVER_DELETED = "server-deleted"
EVENT_CONFIG_RESTORED = "config-restored"
EVENT_CONFIG_CHANGED = "config-changed"
EVENT_SERVER_STATUS = "mcp-server-status"
