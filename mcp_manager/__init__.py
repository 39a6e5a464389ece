"""
MCP Manager - manage the MCP server entries of a Claude Desktop config file.

The same configuration is reachable from the local command line and, through
an embedded SSE endpoint, from any MCP client that wants to list, add, update
or remove servers.
"""

from mcp_manager.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
