"""
Tool provider, catalog and dispatch ports.
"""
from __future__ import annotations
from typing import Protocol, List, Optional, Dict, Any, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_console.abstractions.dto.tools import (
        ContentFragment,
        DispatchOutcome,
        ToolDescriptor,
        ToolInvocation,
    )

class IToolProvider(Protocol):
    def list_tools(self) -> List[Dict[str, Any]]:
        """Entries carry name, description and input_schema."""
        ...
    def call_tool(self, name: str, arguments: Dict[str, Any]) -> List["ContentFragment"]:
        ...
    def close(self) -> None:
        ...

class IToolCatalog(Protocol):
    def fetch(self) -> Tuple["ToolDescriptor", ...]:
        ...
    def snapshot(self) -> Tuple["ToolDescriptor", ...]:
        ...
    def get_tool(self, name: str) -> Optional["ToolDescriptor"]:
        ...

class IToolDispatcher(Protocol):
    def dispatch(self, invocation: "ToolInvocation", snapshot: Sequence["ToolDescriptor"]) -> "DispatchOutcome":
        ...

__all__ = ["IToolProvider", "IToolCatalog", "IToolDispatcher"]
