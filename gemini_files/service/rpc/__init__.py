"""
JSON-RPC dispatch and MCP tool catalog.
"""

from .dispatcher import FilesRpcDispatcher, PROTOCOL_VERSION, SERVER_NAME
from .tools import TOOLS, ToolDefinition, get_tool, list_tools

__all__ = [
    "FilesRpcDispatcher",
    "PROTOCOL_VERSION",
    "SERVER_NAME",
    "TOOLS",
    "ToolDefinition",
    "get_tool",
    "list_tools",
]
