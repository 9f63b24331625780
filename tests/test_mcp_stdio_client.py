import asyncio
import threading
import types
from datetime import timedelta

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import ErrorData

from mcp_console.abstractions.dto.tools import ContentFragment
from mcp_console.abstractions.errors import ProviderUnavailable, ToolExecutionFault
from mcp_console.infrastructure.config import McpServerConfig
from mcp_console.infrastructure.mcp.stdio_client import (
    McpStdioToolProvider,
    content_to_fragments,
    tool_to_entry,
)


class FakeSession:
    """Stands in for ClientSession; coroutines run on the provider's loop thread."""

    def __init__(self, call_result=None, call_error=None, delay=0.0):
        self.call_result = call_result
        self.call_error = call_error
        self.delay = delay
        self.calls = []

    async def list_tools(self):
        return types.SimpleNamespace(
            tools=[
                types.SimpleNamespace(
                    name="echo",
                    description="Echo back the message",
                    inputSchema={"type": "object", "properties": {"message": {}}, "required": ["message"]},
                )
            ]
        )

    async def call_tool(self, name, arguments=None, read_timeout_seconds=None):
        self.calls.append((name, arguments, read_timeout_seconds))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.call_error is not None:
            raise self.call_error
        return self.call_result


def _text(value):
    return types.SimpleNamespace(type="text", text=value)


@pytest.fixture
def provider():
    return McpStdioToolProvider(McpServerConfig(name="everything", command="npx"), timeout_seconds=0.5)


@pytest.fixture
def attached(provider, monkeypatch):
    """Provider with a running loop thread and no server process; tests set _session."""
    monkeypatch.setattr(provider, "connect", lambda: None)
    provider._start_loop()
    yield provider
    provider._stop_loop()


def test_content_blocks_become_fragments():
    blocks = [
        types.SimpleNamespace(type="text", text="a.txt\nb.txt"),
        types.SimpleNamespace(type="image", data="...", mimeType="image/png"),
    ]
    assert content_to_fragments(blocks) == [
        ContentFragment("text", "a.txt\nb.txt"),
        ContentFragment("image", None),
    ]
    assert content_to_fragments(None) == []


def test_tool_to_entry_normalizes_schema():
    tool = types.SimpleNamespace(
        name="echo",
        description=None,
        inputSchema={"type": "object", "properties": {"message": {}}, "required": ["message"]},
    )
    assert tool_to_entry(tool) == {
        "name": "echo",
        "description": "",
        "input_schema": {"type": "object", "properties": {"message": {}}, "required": ["message"]},
    }


def test_provider_is_lazy(provider):
    assert not provider.connected
    # Closing a never-connected provider is a no-op
    provider.close()
    assert not provider.connected


class TestToolSurface:
    def test_list_tools_returns_entries(self, attached):
        attached._session = FakeSession()
        assert attached.list_tools() == [
            {
                "name": "echo",
                "description": "Echo back the message",
                "input_schema": {"type": "object", "properties": {"message": {}}, "required": ["message"]},
            }
        ]

    def test_call_tool_returns_fragments(self, attached):
        session = FakeSession(call_result=types.SimpleNamespace(content=[_text("hi")], isError=False))
        attached._session = session

        assert attached.call_tool("echo", {"message": "hi"}) == [ContentFragment("text", "hi")]
        assert session.calls == [("echo", {"message": "hi"}, timedelta(seconds=0.5))]

    def test_error_result_joins_content(self, attached):
        attached._session = FakeSession(
            call_result=types.SimpleNamespace(content=[_text("boom"), _text("details")], isError=True)
        )
        with pytest.raises(ToolExecutionFault) as exc:
            attached.call_tool("echo", {})
        assert str(exc.value) == "boom\ndetails"

    def test_error_result_without_content(self, attached):
        attached._session = FakeSession(call_result=types.SimpleNamespace(content=[], isError=True))
        with pytest.raises(ToolExecutionFault, match="tool 'echo' reported an error"):
            attached.call_tool("echo", {})

    def test_protocol_error_is_execution_fault(self, attached):
        error = McpError(ErrorData(code=-32602, message="Unknown tool: nope"))
        attached._session = FakeSession(call_error=error)
        with pytest.raises(ToolExecutionFault, match="Unknown tool: nope"):
            attached.call_tool("nope", {})

    def test_transport_failure_is_provider_unavailable(self, attached):
        attached._session = FakeSession(call_error=BrokenPipeError("pipe closed"))
        with pytest.raises(ProviderUnavailable, match="pipe closed"):
            attached.call_tool("echo", {})

    def test_slow_call_times_out(self, attached):
        attached._session = FakeSession(call_result=types.SimpleNamespace(content=[], isError=False), delay=5.0)
        with pytest.raises(ProviderUnavailable, match="timed out after 0.5s"):
            attached.call_tool("echo", {})

    def test_missing_session_is_provider_unavailable(self, attached):
        with pytest.raises(ProviderUnavailable, match="not connected"):
            attached.list_tools()


class TestShutdown:
    def test_connect_timeout_cancels_server_task(self, provider, monkeypatch):
        exited = threading.Event()

        async def never_ready(ready):
            try:
                await asyncio.sleep(60)
            finally:
                exited.set()

        monkeypatch.setattr(provider, "_serve", never_ready)
        with pytest.raises(ProviderUnavailable, match="did not start within 0.5s"):
            provider.connect()

        assert exited.wait(timeout=2.0)
        assert provider._loop is None

    def test_close_cancels_server_task_that_ignores_shutdown(self, provider, monkeypatch):
        exited = threading.Event()

        async def stubborn(ready):
            ready.set_result(True)
            try:
                await asyncio.sleep(60)
            finally:
                exited.set()

        monkeypatch.setattr(provider, "_serve", stubborn)
        provider.connect()
        provider.close()

        assert exited.wait(timeout=2.0)
        assert provider._loop is None
