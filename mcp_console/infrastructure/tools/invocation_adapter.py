"""
Tool dispatcher implementing the IToolDispatcher interface.

Every failure mode ends up as data: an unknown tool yields the UNKNOWN_TOOL
sentinel, any fault raised while calling the tool yields a failed
ToolExecutionResult.
"""

import logging
from typing import Sequence, TYPE_CHECKING

from mcp_console.abstractions.dto.tools import (
    UNKNOWN_TOOL,
    DispatchOutcome,
    ToolDescriptor,
    ToolExecutionResult,
    ToolInvocation,
)
from mcp_console.abstractions.errors import ProviderUnavailable

if TYPE_CHECKING:
    from mcp_console.interfaces.services.tools import IToolProvider

logger = logging.getLogger(__name__)

ERROR_PREFIX = "tool execution error: "


class ToolDispatcher:
    """
    Validates an invocation against a catalog snapshot and executes it once.
    """

    def __init__(self, provider: "IToolProvider"):
        self.provider = provider

    def dispatch(self, invocation: ToolInvocation, snapshot: Sequence[ToolDescriptor]) -> DispatchOutcome:
        """
        Execute a tool by name with the parsed argument mapping.

        Returns UNKNOWN_TOOL without contacting the provider when the name is
        not in the snapshot.
        """
        name = invocation.tool_name
        if not any(descriptor.name == name for descriptor in snapshot):
            logger.warning("Model requested unknown tool '%s'", name)
            return UNKNOWN_TOOL

        logger.info("Calling tool '%s' with %s", name, invocation.arguments)
        try:
            fragments = self.provider.call_tool(name, invocation.arguments)
        except ProviderUnavailable as e:
            logger.error("Tool provider unavailable while calling '%s': %s", name, e)
            return ToolExecutionResult(success=False, text=f"{ERROR_PREFIX}{e}")
        except Exception as e:
            logger.warning("Tool '%s' failed: %s", name, e)
            return ToolExecutionResult(success=False, text=f"{ERROR_PREFIX}{e}")

        text = "\n".join(fragment.render() for fragment in fragments)
        return ToolExecutionResult(success=True, text=text)


__all__ = ["ToolDispatcher", "ERROR_PREFIX"]
