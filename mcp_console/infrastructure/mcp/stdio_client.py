"""
MCP stdio tool provider (sync wrapper around the mcp Python SDK).

Responsibilities:
- Launch the configured MCP server as a subprocess and run the stdio handshake.
- Keep one session open for the lifetime of the provider (opened lazily).
- list_tools() -> list of {"name", "description", "input_schema"} dicts
- call_tool(name, arguments) -> list of ContentFragment

The SDK is asyncio-based. A private event loop runs on a daemon thread and one
long-lived task owns the stdio/session context managers, so they are entered and
exited by the same task. Public methods block until the coroutine finishes or
the configured timeout elapses.

Error mapping:
- launch failure, lost transport, timeouts  -> ProviderUnavailable
- MCP protocol errors, results with isError -> ToolExecutionFault
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from datetime import timedelta
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from mcp_console.abstractions.dto.tools import ContentFragment
from mcp_console.abstractions.errors import ProviderUnavailable, ToolExecutionFault
from mcp_console.infrastructure.config import McpServerConfig

logger = logging.getLogger(__name__)

_CANCEL_GRACE_SECONDS = 5.0


def content_to_fragments(content: Any) -> List[ContentFragment]:
    """Normalize SDK content blocks (TextContent, ImageContent, ...) into fragments."""
    fragments: List[ContentFragment] = []
    for block in content or []:
        block_type = getattr(block, "type", None) or "other"
        text = getattr(block, "text", None)
        fragments.append(ContentFragment(type=str(block_type), text=text if isinstance(text, str) else None))
    return fragments


def tool_to_entry(tool: Any) -> Dict[str, Any]:
    schema = getattr(tool, "inputSchema", None)
    description = getattr(tool, "description", None)
    return {
        "name": getattr(tool, "name", ""),
        "description": description if isinstance(description, str) else "",
        "input_schema": dict(schema) if isinstance(schema, dict) else {},
    }


class McpStdioToolProvider:
    def __init__(self, server: McpServerConfig, timeout_seconds: float = 30.0) -> None:
        self.server = server
        self.timeout_seconds = timeout_seconds
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._session: Optional[ClientSession] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._serve_future: Optional[concurrent.futures.Future] = None
        self._lock = threading.Lock()

    # ---------- Lifecycle ----------

    @property
    def connected(self) -> bool:
        return self._session is not None

    def connect(self) -> None:
        """Launch the server and complete the MCP handshake. No-op when already connected."""
        with self._lock:
            if self._session is not None:
                return
            if self._loop is not None:
                # Previous session ended on its own; drop its loop before relaunching.
                self._stop_loop()
            self._start_loop()
            ready: concurrent.futures.Future = concurrent.futures.Future()
            self._serve_future = asyncio.run_coroutine_threadsafe(self._serve(ready), self._loop)
            try:
                ready.result(timeout=self.timeout_seconds)
            except concurrent.futures.TimeoutError:
                self._stop_loop()
                raise ProviderUnavailable(
                    f"MCP server '{self.server.name}' did not start within {self.timeout_seconds:g}s"
                )
            except Exception as e:
                self._stop_loop()
                raise ProviderUnavailable(f"Could not start MCP server '{self.server.name}': {e}") from e
            logger.info("Connected to MCP server '%s' (%s)", self.server.name, self.server.command)

    def close(self) -> None:
        """Shut the session down and stop the loop thread."""
        with self._lock:
            if self._loop is None:
                return
            if self._shutdown is not None:
                self._loop.call_soon_threadsafe(self._shutdown.set)
            if self._serve_future is not None:
                try:
                    self._serve_future.result(timeout=self.timeout_seconds)
                except Exception as e:
                    logger.warning("MCP server '%s' did not shut down cleanly: %s", self.server.name, e)
            self._stop_loop()
            logger.info("Closed MCP server '%s'", self.server.name)

    def __enter__(self) -> "McpStdioToolProvider":
        self.connect()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _start_loop(self) -> None:
        loop = asyncio.new_event_loop()
        started = threading.Event()

        def _run() -> None:
            asyncio.set_event_loop(loop)
            started.set()
            loop.run_forever()

        self._loop = loop
        self._thread = threading.Thread(target=_run, name=f"mcp-{self.server.name}", daemon=True)
        self._thread.start()
        started.wait(timeout=5.0)

    def _stop_loop(self) -> None:
        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        self._session = None
        self._shutdown = None
        self._serve_future = None
        if loop is None:
            return
        if thread is not None and thread.is_alive():
            self._cancel_pending(loop)
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=2.0)
        loop.close()

    def _cancel_pending(self, loop: asyncio.AbstractEventLoop) -> None:
        # Cancelled tasks unwind their context managers, which terminates the server process.
        async def _cancel_all() -> None:
            current = asyncio.current_task()
            pending = [t for t in asyncio.all_tasks() if t is not current and not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending, timeout=_CANCEL_GRACE_SECONDS)

        try:
            asyncio.run_coroutine_threadsafe(_cancel_all(), loop).result(timeout=_CANCEL_GRACE_SECONDS + 1.0)
        except Exception as e:
            logger.warning("MCP server '%s' tasks did not stop cleanly: %s", self.server.name, e)

    async def _serve(self, ready: concurrent.futures.Future) -> None:
        params = StdioServerParameters(
            command=self.server.command,
            args=list(self.server.args),
            env=self.server.env,
            cwd=self.server.cwd,
        )
        self._shutdown = asyncio.Event()
        try:
            async with stdio_client(params) as (read_stream, write_stream):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    self._session = session
                    ready.set_result(True)
                    await self._shutdown.wait()
        except BaseException as e:
            if not ready.done():
                ready.set_exception(e)
            elif not isinstance(e, asyncio.CancelledError):
                logger.error("MCP server '%s' session ended: %s", self.server.name, e)
            raise
        finally:
            self._session = None

    # ---------- Tool surface ----------

    def _run(self, coro_factory, what: str) -> Any:
        self.connect()
        session = self._session
        if session is None or self._loop is None:
            raise ProviderUnavailable(f"MCP server '{self.server.name}' is not connected")
        future = asyncio.run_coroutine_threadsafe(coro_factory(session), self._loop)
        try:
            return future.result(timeout=self.timeout_seconds)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise ProviderUnavailable(f"{what} timed out after {self.timeout_seconds:g}s")
        except McpError as e:
            raise ToolExecutionFault(str(e)) from e
        except Exception as e:
            raise ProviderUnavailable(f"{what} failed: {e}") from e

    def list_tools(self) -> List[Dict[str, Any]]:
        result = self._run(lambda s: s.list_tools(), "tools/list")
        return [tool_to_entry(tool) for tool in getattr(result, "tools", []) or []]

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[ContentFragment]:
        timeout = timedelta(seconds=self.timeout_seconds)
        result = self._run(
            lambda s: s.call_tool(name, arguments=dict(arguments or {}), read_timeout_seconds=timeout),
            f"tools/call '{name}'",
        )
        fragments = content_to_fragments(getattr(result, "content", None))
        if getattr(result, "isError", False):
            message = "\n".join(f.render() for f in fragments) or f"tool '{name}' reported an error"
            raise ToolExecutionFault(message)
        return fragments


__all__ = ["McpStdioToolProvider", "content_to_fragments", "tool_to_entry"]
