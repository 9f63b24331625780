"""
Error taxonomy shared across layers.

Only faults that must cross a layer boundary are exceptions. Malformed tool
calls and unknown tools are ordinary data (see dto/tools.py).
"""

from __future__ import annotations


class McpConsoleError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(McpConsoleError):
    """Required settings are missing or invalid. Fatal at startup."""


class ProviderUnavailable(McpConsoleError):
    """The tool provider could not be launched, reached, or timed out."""


class ToolExecutionFault(McpConsoleError):
    """The tool provider accepted the call but the tool itself failed."""


class CompletionUnavailable(McpConsoleError):
    """The completion provider failed to produce a reply. Fatal to the turn."""


__all__ = [
    "McpConsoleError",
    "ConfigurationError",
    "ProviderUnavailable",
    "ToolExecutionFault",
    "CompletionUnavailable",
]
