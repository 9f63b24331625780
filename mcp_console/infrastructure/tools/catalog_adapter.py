"""
Tool catalog adapter implementing the IToolCatalog interface.

The catalog fetches descriptors from a tool provider once per session and keeps
the ordered snapshot until refresh() is called.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from mcp_console.abstractions.dto.tools import ParamSpec, ToolDescriptor

if TYPE_CHECKING:
    from mcp_console.interfaces.services.tools import IToolProvider

logger = logging.getLogger(__name__)

REQUIRED_MARKER = "(Required)"


def descriptor_from_schema(name: str, description: Optional[str], schema: Optional[Dict[str, Any]]) -> ToolDescriptor:
    """
    Build a ToolDescriptor from a JSONSchema object.

    Parameters keep the order of schema["properties"]; required-ness comes from
    the separate schema["required"] name list.
    """
    schema = schema if isinstance(schema, dict) else {}
    properties = schema.get("properties") or {}
    required_raw = schema.get("required") or []
    required = {str(n) for n in required_raw} if isinstance(required_raw, list) else set()

    params: List[ParamSpec] = []
    if isinstance(properties, dict):
        for param_name, details in properties.items():
            desc = details.get("description") if isinstance(details, dict) else None
            params.append(
                ParamSpec(
                    name=str(param_name),
                    description=desc if isinstance(desc, str) else None,
                    required=str(param_name) in required,
                )
            )

    return ToolDescriptor(
        name=name,
        description=description or "",
        parameters=tuple(params),
        raw_schema=schema,
    )


def format_parameter(param: ParamSpec) -> str:
    """
    Example lines:
    - path: Directory to list (Required)
    - depth: How deep to recurse
    """
    parts = [f"- {param.name}:"]
    if param.description:
        parts.append(param.description)
    if param.required:
        parts.append(REQUIRED_MARKER)
    return " ".join(parts)


def format_tool(descriptor: ToolDescriptor) -> str:
    """Render a descriptor as a block for the system prompt."""
    lines = [
        f"Tool: {descriptor.name}",
        f"Description: {descriptor.description}",
        "Parameters:",
    ]
    lines.extend(format_parameter(p) for p in descriptor.parameters)
    return "\n".join(lines)


class ToolCatalog:
    """
    Session-scoped catalog over an IToolProvider.
    """

    def __init__(self, provider: "IToolProvider"):
        self.provider = provider
        self._snapshot: Optional[Tuple[ToolDescriptor, ...]] = None

    def fetch(self) -> Tuple[ToolDescriptor, ...]:
        """
        Query the provider's tool listing and replace the cached snapshot.

        Raises:
            ProviderUnavailable: if the provider cannot be reached
        """
        entries = self.provider.list_tools()
        descriptors: List[ToolDescriptor] = []
        seen = set()
        for entry in entries:
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                logger.warning("Skipping tool entry without a name: %r", entry)
                continue
            if name in seen:
                logger.warning("Duplicate tool name '%s' in listing; keeping the first", name)
                continue
            seen.add(name)
            descriptors.append(
                descriptor_from_schema(name, entry.get("description"), entry.get("input_schema"))
            )
        self._snapshot = tuple(descriptors)
        logger.info("Fetched %d tool(s) from provider", len(self._snapshot))
        return self._snapshot

    def snapshot(self) -> Tuple[ToolDescriptor, ...]:
        """Return the cached snapshot, fetching on first use."""
        if self._snapshot is None:
            return self.fetch()
        return self._snapshot

    def refresh(self) -> Tuple[ToolDescriptor, ...]:
        return self.fetch()

    def get_tool(self, name: str) -> Optional[ToolDescriptor]:
        for descriptor in self.snapshot():
            if descriptor.name == name:
                return descriptor
        return None

    format = staticmethod(format_tool)


__all__ = ["ToolCatalog", "descriptor_from_schema", "format_tool", "format_parameter", "REQUIRED_MARKER"]
