"""
Composition module for CLI DI (edge wiring).
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from mcp_console.infrastructure.config import Config

if TYPE_CHECKING:
    from mcp_console.agents.chat_session import ChatSession
    from mcp_console.interfaces.services.llm import ICompletionProvider
    from mcp_console.interfaces.services.tools import IToolCatalog, IToolDispatcher, IToolProvider


def build_config() -> Config:
    """
    Construct and validate configuration.

    Raises:
        ConfigurationError: when required settings are missing
    """
    config = Config()
    config.validate()
    return config


def build_completion_provider(config: Config) -> "ICompletionProvider":
    """
    Construct and return an ICompletionProvider for the configured provider.
    """
    from mcp_console.infrastructure.llm.openai_compatible import OpenAICompletionProvider
    return OpenAICompletionProvider.from_config(config)


def build_tool_provider(config: Config) -> "IToolProvider":
    """
    Construct and return an IToolProvider for the configured MCP server.
    The server process is launched lazily on first use.
    """
    from mcp_console.infrastructure.mcp.stdio_client import McpStdioToolProvider
    return McpStdioToolProvider(config.mcp_server(), timeout_seconds=config.MCP_TIMEOUT_SECONDS)


def build_tool_catalog(provider: "IToolProvider") -> "IToolCatalog":
    """
    Construct and return an IToolCatalog instance.
    """
    from mcp_console.infrastructure.tools.catalog_adapter import ToolCatalog
    return ToolCatalog(provider)


def build_tool_dispatcher(provider: "IToolProvider") -> "IToolDispatcher":
    """
    Construct and return an IToolDispatcher instance.
    """
    from mcp_console.infrastructure.tools.invocation_adapter import ToolDispatcher
    return ToolDispatcher(provider)


def build_chat_session(
    completion: "ICompletionProvider",
    provider: "IToolProvider",
    catalog: Optional["IToolCatalog"] = None,
) -> "ChatSession":
    """
    Wire a ChatSession whose catalog and dispatcher share one tool provider connection.
    """
    from mcp_console.agents.chat_session import ChatSession
    return ChatSession(
        completion=completion,
        catalog=catalog or build_tool_catalog(provider),
        dispatcher=build_tool_dispatcher(provider),
    )
