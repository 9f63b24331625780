"""
Interactive console for chatting with a model that can call MCP server tools.

Features:
- Tool discovery from a stdio MCP server at startup (listed in a table)
- OpenAI, Azure OpenAI or local Ollama completions
- Rich panels for assistant replies, tool results and final replies
- Smooth prompt experience using prompt_toolkit

Commands:
  /help      Show help
  /tools     List tools advertised by the MCP server
  /refresh   Re-fetch the tool list
  /config    Show current configuration
  /clear     Clear the screen
  quit/exit  End the session

Run:
  python -m mcp_console
  or
  mcp-console
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.completion import WordCompleter

from rich.panel import Panel
from rich.box import ROUNDED
from rich.markup import escape

from mcp_console.abstractions.errors import CompletionUnavailable, ConfigurationError, ProviderUnavailable
from mcp_console.api.di.cli_composition import (
    build_chat_session,
    build_completion_provider,
    build_config,
    build_tool_provider,
)
from .console import configure_logging, make_console
from .handlers import (
    handle_clear,
    list_tools,
    refresh_tools,
    render_turn,
    show_config,
    show_error,
    show_help,
)

logger = logging.getLogger(__name__)

COMMANDS = ["/help", "/tools", "/refresh", "/config", "/clear", "/exit", "quit", "exit"]


def run() -> int:
    """Main interactive loop. Returns a process exit code."""
    console = make_console("dark")
    try:
        config = build_config()
    except ConfigurationError as e:
        show_error(console, "Configuration Error", str(e))
        return 2

    console = make_console(config.CLI_THEME, use_color=config.use_color)
    configure_logging(console, config.LOG_LEVEL)

    completion = build_completion_provider(config)
    provider = build_tool_provider(config)
    server_name = config.mcp_server().name
    session = build_chat_session(completion, provider)

    console.print(
        Panel(
            "MCP Console\n"
            f"Model [accent]{escape(config.model)}[/accent] via {escape(config.COMPLETION_PROVIDER)}, "
            f"tools from MCP server [accent]{escape(server_name)}[/accent].",
            title="Welcome",
            box=ROUNDED
        )
    )

    try:
        with console.status(f"Starting MCP server '{escape(server_name)}'..."):
            session.start()
    except ProviderUnavailable as e:
        show_error(console, "Tool Provider Unavailable", str(e))
        provider.close()
        return 1

    list_tools(console, session.catalog.snapshot(), server_name)
    show_help(console)

    prompt = PromptSession(history=InMemoryHistory())
    completer = WordCompleter(COMMANDS, ignore_case=True, match_middle=True)

    try:
        while not session.terminated:
            try:
                with patch_stdout():
                    user_input: Optional[str] = prompt.prompt("User: ", completer=completer)
            except (KeyboardInterrupt, EOFError):
                console.print("\n[warning]Exiting...[/warning]")
                break

            cmd = user_input.strip()

            # Built-in commands
            if cmd == "/help":
                show_help(console)
                continue
            if cmd == "/tools":
                list_tools(console, session.catalog.snapshot(), server_name)
                continue
            if cmd == "/refresh":
                refresh_tools(console, session.catalog, server_name)
                continue
            if cmd == "/config":
                show_config(console, config)
                continue
            if cmd == "/clear":
                handle_clear(console)
                continue
            if cmd == "/exit":
                cmd = "exit"

            try:
                with console.status("Thinking..."):
                    turn = session.step(cmd)
            except CompletionUnavailable as e:
                logger.error("Completion failed: %s", e)
                show_error(console, "Completion Unavailable", str(e))
                continue
            except KeyboardInterrupt:
                console.print("\n[warning]Exiting...[/warning]")
                break
            render_turn(console, turn)
    finally:
        provider.close()
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
