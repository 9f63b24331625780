"""
Console chat client that lets a language model call tools from an MCP server.
"""

__version__ = "0.1.0"
