"""
POCO DTO for a single processed user line. No framework dependencies.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional

from mcp_console.abstractions.dto.tools import ToolExecutionResult, ToolInvocation

TurnStatus = Literal["completed", "reprompt", "terminated"]


@dataclass
class AgentTurn:
    status: TurnStatus
    user_input: str = ""
    raw_reply: Optional[str] = None
    tool_call: Optional[ToolInvocation] = None
    tool_result: Optional[ToolExecutionResult] = None
    unknown_tool: bool = False
    final_response: Optional[str] = None

    @property
    def used_tool(self) -> bool:
        return self.tool_result is not None


__all__ = ["AgentTurn", "TurnStatus"]
