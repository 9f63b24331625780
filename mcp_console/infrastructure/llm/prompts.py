"""
System prompt construction.

Builds the canonical prompt that:
- Lists available tools with descriptions and parameters
- Instructs the model to reply with ONLY the tool call JSON when a tool is needed
- Tells the model how to use a tool result once it arrives
"""

from __future__ import annotations

from typing import Sequence

from mcp_console.abstractions.dto.tools import ToolDescriptor
from mcp_console.infrastructure.tools.catalog_adapter import format_tool

TOOL_CALL_FORMAT = (
    "{\n"
    '    "tool": "tool-name",\n'
    '    "arguments": {\n'
    '        "argument-name": "value"\n'
    "    }\n"
    "}"
)


def build_system_prompt(tools: Sequence[ToolDescriptor]) -> str:
    tools_block = "\n\n".join(format_tool(t) for t in tools) or "(no tools available)"

    return (
        "You are a helpful assistant with access to these tools:\n\n"
        f"{tools_block}\n\n"
        "Choose the appropriate tool based on the user's question. "
        "If no tool is needed, reply directly.\n\n"
        "IMPORTANT: When you need to use a tool, you must ONLY respond with "
        "the exact JSON object format below, nothing else:\n"
        f"{TOOL_CALL_FORMAT}\n\n"
        "After receiving a tool's response:\n"
        "1. Transform the raw data into a natural, conversational response\n"
        "2. Keep responses concise but informative\n"
        "3. Focus on the most relevant information\n"
        "4. Use appropriate context from the user's question\n"
        "5. Avoid simply repeating the raw data"
    )


__all__ = ["build_system_prompt", "TOOL_CALL_FORMAT"]
