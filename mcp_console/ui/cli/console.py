"""
Console utilities for CLI.
"""

from typing import Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
import logging
import os
import sys


_THEMES = {
    "light": {
        "accent": "dark_green",
        "warning": "dark_orange",
        "error": "red",
        "success": "green",
        "muted": "grey42",
    },
    "dark": {
        "accent": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "green",
        "muted": "grey70",
    },
}


def _build_theme(theme_name: str) -> Theme:
    # Styles referenced by handlers and app markup; unknown names fall back to dark
    return Theme(_THEMES.get(theme_name, _THEMES["dark"]))


def _should_enable_color(enable: Optional[bool]):
    """
    Compute effective color enablement, force_terminal, and color_system.

    Rules:
    - Respect NO_COLOR
    - When enable is None: auto-detect via isatty
    - If enable is True: prefer colors; If False: disable and force_terminal=False
    """
    no_color_env = os.getenv("NO_COLOR") is not None
    tty = bool(getattr(sys.stdout, "isatty", lambda: False)())

    desired_raw = tty if enable is None else bool(enable)
    desired = desired_raw and not no_color_env

    if enable is False:
        force_terminal = False
    else:
        force_terminal = bool(desired and tty)

    color_system = "auto" if desired else None
    return desired, force_terminal, color_system


def make_console(theme_name: str, use_color: Optional[bool] = None) -> Console:
    """Create a Rich console with the selected theme and color policy."""
    theme = _build_theme(theme_name)
    desired, force_terminal, color_system = _should_enable_color(use_color)

    return Console(
        theme=theme,
        no_color=not desired,
        color_system=color_system,
        force_terminal=force_terminal,
        markup=True,       # render style tags like [warning]...[/warning]
        emoji=False,
        highlight=False,
    )


def configure_logging(console: Console, level: str = "WARNING") -> None:
    """Route package logging through the console so it interleaves with panels."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


__all__ = ["make_console", "configure_logging"]
