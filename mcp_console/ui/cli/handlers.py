"""
Command handlers and renderers for CLI.
"""
from __future__ import annotations

from typing import Sequence, TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.box import ROUNDED
from rich.markup import escape

from mcp_console.abstractions.dto.tools import ToolDescriptor
from mcp_console.abstractions.errors import ProviderUnavailable

if TYPE_CHECKING:
    from mcp_console.domain.entities.agent_turn import AgentTurn
    from mcp_console.infrastructure.config import Config
    from mcp_console.interfaces.services.tools import IToolCatalog


def list_tools(console: Console, tools: Sequence[ToolDescriptor], server_name: str = "") -> None:
    """Render a table of the tools advertised by the server."""
    title = Text(f"Tools from MCP server [{server_name}]" if server_name else "Available Tools")
    table = Table(title=title, box=ROUNDED)
    table.add_column("Name", no_wrap=True)
    table.add_column("Description")
    table.add_column("Required Params")

    for descriptor in tools:
        req = ", ".join(descriptor.required_names)
        # Server text is shown literally, never parsed as markup
        table.add_row(Text(descriptor.name), Text(descriptor.description), Text(req or "-"))

    console.print(table)


def refresh_tools(console: Console, catalog: "IToolCatalog", server_name: str = "") -> None:
    """Handle /refresh: re-fetch the catalog and show the result."""
    try:
        tools = catalog.fetch()
    except ProviderUnavailable as e:
        console.print(Panel(Text(str(e)), title="Tool Provider Unavailable", box=ROUNDED, border_style="error"))
        return
    list_tools(console, tools, server_name)


def show_config(console: Console, config: "Config") -> None:
    """Display current provider configuration."""
    server = config.mcp_server()
    content = (
        f"Provider: {config.COMPLETION_PROVIDER}\n"
        f"Model: {config.model}\n"
        f"MCP server: {server.name}\n"
        f"Command: {server.command} {' '.join(server.args)}\n"
        f"MCP timeout: {config.MCP_TIMEOUT_SECONDS:g}s\n"
        f"Completion timeout: {config.COMPLETION_TIMEOUT_SECONDS:g}s\n"
    )
    console.print(Panel(Text(content), title="Configuration", box=ROUNDED))


def show_help(console: Console) -> None:
    """Print help panel."""
    console.print(
        Panel(
            "Commands\n"
            "/help      Show help\n"
            "/tools     List tools advertised by the MCP server\n"
            "/refresh   Re-fetch the tool list from the MCP server\n"
            "/config    Show provider configuration\n"
            "/clear     Clear the screen\n"
            "quit       End the session (also: exit, /exit)\n\n"
            "Type a question; the model will call a tool when it needs one.",
            title="Help",
            box=ROUNDED
        )
    )


def render_turn(console: Console, turn: "AgentTurn") -> None:
    """Show the raw assistant reply and, when a tool ran, its result and the final reply."""
    if turn.status == "reprompt":
        console.print("[muted]Please enter a message.[/muted]")
        return
    if turn.status == "terminated":
        console.print("[warning]Exiting...[/warning]")
        return

    console.print(Panel(Text(turn.raw_reply or ""), title="Assistant", box=ROUNDED))

    if turn.unknown_tool and turn.tool_call is not None:
        console.print(f"[warning]Tool not found: {escape(turn.tool_call.tool_name)}[/warning]")
        return

    if turn.tool_result is not None and turn.tool_call is not None:
        style = "success" if turn.tool_result.success else "error"
        console.print(
            Panel(
                Text(turn.tool_result.text),
                title=f"Tool Result: {escape(turn.tool_call.tool_name)}",
                box=ROUNDED,
                border_style=style,
            )
        )
        console.print(Panel(Text(turn.final_response or ""), title="Final Response", box=ROUNDED))


def show_error(console: Console, title: str, message: str) -> None:
    console.print(Panel(Text(message), title=title, box=ROUNDED, border_style="error"))


def handle_clear(console) -> None:
    """Handle /clear command."""
    console.clear()
