"""
Tool catalog and dispatch over an MCP tool provider.
"""

from .catalog_adapter import ToolCatalog, format_tool
from .invocation_adapter import ToolDispatcher

__all__ = ["ToolCatalog", "ToolDispatcher", "format_tool"]
