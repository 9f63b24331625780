"""
Classify a raw model reply as a plain answer or a tool invocation.

A reply is a tool invocation only when the whole text is a JSON object with a
"tool" name and an "arguments" object, e.g.

    {"tool": "list_directory", "arguments": {"path": "/tmp"}}

"arguments" may also arrive as a JSON-encoded string, which gets a second parse.
Anything else comes back as PlainReply carrying the original text unchanged.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from mcp_console.abstractions.dto.tools import InterpretedReply, PlainReply, ToolInvocation

logger = logging.getLogger(__name__)


def _tool_name(value: Any) -> Optional[str]:
    # bool is an int subclass but never a usable name
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _arguments(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except (ValueError, RecursionError):
            return None
        if isinstance(decoded, dict):
            return decoded
    return None


def interpret(text: str) -> InterpretedReply:
    """Never raises; malformed tool calls collapse to PlainReply(text)."""
    try:
        obj = json.loads(text)
    except (TypeError, ValueError, RecursionError):
        return PlainReply(text)

    if not isinstance(obj, dict) or "tool" not in obj:
        return PlainReply(text)

    name = _tool_name(obj.get("tool"))
    if name is None:
        logger.debug("Reply has a 'tool' key without a usable name: %r", obj.get("tool"))
        return PlainReply(text)

    if "arguments" not in obj:
        logger.debug("Reply names tool '%s' but has no 'arguments'", name)
        return PlainReply(text)

    arguments = _arguments(obj.get("arguments"))
    if arguments is None:
        logger.debug("Reply names tool '%s' but 'arguments' is not a JSON object", name)
        return PlainReply(text)

    return ToolInvocation(tool_name=name, arguments=arguments)


class ResponseInterpreter:
    """Object form of interpret() for injection into the session."""

    def interpret(self, text: str) -> InterpretedReply:
        return interpret(text)


__all__ = ["interpret", "ResponseInterpreter"]
