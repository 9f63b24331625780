"""
Shared tool DTOs for catalogs, interpreted replies and invocation results.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple, Union


@dataclass(frozen=True)
class ParamSpec:
    name: str
    description: Optional[str] = None
    required: bool = False


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: Tuple[ParamSpec, ...] = ()
    raw_schema: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def required_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters if p.required)


@dataclass(frozen=True)
class ContentFragment:
    """One piece of tool output as returned by the provider."""
    type: str
    text: Optional[str] = None

    def render(self) -> str:
        if self.text is not None:
            return self.text
        return f"[{self.type}]"


@dataclass(frozen=True)
class PlainReply:
    text: str


@dataclass(frozen=True)
class ToolInvocation:
    tool_name: str
    arguments: Dict[str, Any]


# Result of interpreting one model reply.
InterpretedReply = Union[PlainReply, ToolInvocation]


@dataclass(frozen=True)
class ToolExecutionResult:
    success: bool
    text: str


class _UnknownTool:
    """Sentinel returned by the dispatcher when a tool name is not in the catalog."""

    _instance: Optional["_UnknownTool"] = None

    def __new__(cls) -> "_UnknownTool":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN_TOOL"

    def __bool__(self) -> bool:
        return False


UNKNOWN_TOOL = _UnknownTool()

DispatchOutcome = Union[ToolExecutionResult, _UnknownTool]

__all__ = [
    "ParamSpec",
    "ToolDescriptor",
    "ContentFragment",
    "PlainReply",
    "ToolInvocation",
    "InterpretedReply",
    "ToolExecutionResult",
    "UNKNOWN_TOOL",
    "DispatchOutcome",
]
