"""
Shared test fixtures: in-memory fakes for the tool provider and the completion
provider. Nothing here spawns processes or touches the network.
"""

import os
import sys
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

# Ensure project root is on sys.path so package imports resolve in tests
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from mcp_console.abstractions.dto.tools import ContentFragment
from mcp_console.abstractions.errors import CompletionUnavailable


LIST_DIRECTORY = {
    "name": "list_directory",
    "description": "List the files in a directory",
    "input_schema": {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "Directory to list"},
            "pattern": {"type": "string", "description": "Optional glob filter"},
        },
        "required": ["path"],
    },
}

ECHO = {
    "name": "echo",
    "description": "Echo back the message",
    "input_schema": {
        "type": "object",
        "properties": {"message": {"type": "string", "description": "Text to echo"}},
        "required": ["message"],
    },
}


class FakeToolProvider:
    """Records every list/call; responses map tool name -> fragments or an exception."""

    def __init__(self, tools: Optional[List[Dict[str, Any]]] = None,
                 responses: Optional[Dict[str, Union[List[ContentFragment], Exception]]] = None,
                 list_error: Optional[Exception] = None) -> None:
        self.tools = list(tools if tools is not None else [LIST_DIRECTORY, ECHO])
        self.responses = dict(responses or {})
        self.list_error = list_error
        self.list_calls = 0
        self.calls: List[tuple] = []
        self.closed = False

    def list_tools(self) -> List[Dict[str, Any]]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return [dict(t) for t in self.tools]

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[ContentFragment]:
        self.calls.append((name, dict(arguments)))
        response = self.responses.get(name, [ContentFragment(type="text", text="ok")])
        if isinstance(response, Exception):
            raise response
        return list(response)

    def close(self) -> None:
        self.closed = True


class FakeCompletion:
    """Replies from a script; keeps a copy of the messages seen on each call."""

    model = "fake-model"

    def __init__(self, replies: Sequence[Union[str, Exception]] = ()) -> None:
        self.replies = list(replies)
        self.requests: List[list] = []

    def complete(self, messages) -> str:
        self.requests.append(list(messages))
        if not self.replies:
            raise CompletionUnavailable("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def tool_provider():
    return FakeToolProvider(
        responses={"list_directory": [ContentFragment(type="text", text="a.txt\nb.txt")]}
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting Config reads so each test starts from defaults."""
    for name in list(os.environ):
        if name.startswith(("OPENAI_", "AZURE_OPENAI_", "OLLAMA_", "MCP_", "COMPLETION_", "CLI_")) or name == "LOG_LEVEL":
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
