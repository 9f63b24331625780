"""
Configuration module for loading environment variables and settings.

This module handles:
1. Loading settings from a .env file
2. Setting default configurations
3. Validating required settings for the selected completion provider
4. Resolving the MCP server launch command (env vars or an mcpServers JSON file)
"""

from __future__ import annotations

import json
import os
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

from mcp_console.abstractions.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

SUPPORTED_PROVIDERS = ("openai", "azure", "ollama")

DEFAULT_SERVER_NAME = "everything"
DEFAULT_SERVER_COMMAND = "npx"
DEFAULT_SERVER_ARGS = "-y @modelcontextprotocol/server-everything"


@dataclass(frozen=True)
class McpServerConfig:
    """Launch parameters for a stdio MCP server."""
    name: str
    command: str
    args: List[str] = field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    cwd: Optional[str] = None


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _optional_float(name: str) -> Optional[float]:
    raw = _env(name)
    if not raw:
        return None
    return _env_float(name, 0.0)


def load_servers_file(path: str) -> Dict[str, McpServerConfig]:
    """
    Read an mcpServers JSON file:

        {"mcpServers": {"everything": {"command": "npx", "args": ["-y", "..."]}}}

    Entries keep file order.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ConfigurationError(f"MCP servers file not found: {path}")
    except OSError as e:
        raise ConfigurationError(f"MCP servers file cannot be read: {path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"MCP servers file is not valid JSON: {path}: {e}")
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"MCP servers file is not UTF-8: {path}: {e}")

    servers_raw = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers_raw, dict) or not servers_raw:
        raise ConfigurationError(f"MCP servers file has no 'mcpServers' entries: {path}")

    servers: Dict[str, McpServerConfig] = {}
    for name, entry in servers_raw.items():
        if not isinstance(entry, dict):
            raise ConfigurationError(f"MCP server '{name}' must be an object")
        command = entry.get("command")
        if not isinstance(command, str) or not command.strip():
            raise ConfigurationError(f"MCP server '{name}' is missing 'command'")
        args = entry.get("args") or []
        if not isinstance(args, list):
            raise ConfigurationError(f"MCP server '{name}' 'args' must be a list")
        env = entry.get("env")
        servers[name] = McpServerConfig(
            name=name,
            command=command.strip(),
            args=[str(a) for a in args],
            env={str(k): str(v) for k, v in env.items()} if isinstance(env, dict) else None,
            cwd=entry.get("cwd") or None,
        )
    return servers


class Config:
    """Configuration manager for the completion provider, MCP server and CLI."""

    def __init__(self) -> None:
        # Completion provider selection
        self.COMPLETION_PROVIDER: str = _env("COMPLETION_PROVIDER", "openai").lower()
        self.COMPLETION_TEMPERATURE: Optional[float] = _optional_float("COMPLETION_TEMPERATURE")
        self.COMPLETION_TIMEOUT_SECONDS: float = _env_float("COMPLETION_TIMEOUT_SECONDS", 60.0)

        # OpenAI (and OpenAI-compatible endpoints)
        self.OPENAI_API_KEY: str = _env("OPENAI_API_KEY")
        self.OPENAI_BASE_URL: str = _env("OPENAI_BASE_URL")
        self.OPENAI_MODEL: str = _env("OPENAI_MODEL", "gpt-4o-mini")

        # Azure OpenAI
        self.AZURE_OPENAI_ENDPOINT: str = _env("AZURE_OPENAI_ENDPOINT")
        self.AZURE_OPENAI_API_KEY: str = _env("AZURE_OPENAI_API_KEY")
        self.AZURE_OPENAI_DEPLOYMENT: str = _env("AZURE_OPENAI_DEPLOYMENT")
        self.AZURE_OPENAI_API_VERSION: str = _env("AZURE_OPENAI_API_VERSION", "2024-06-01")

        # Ollama (OpenAI-compatible shim at /v1)
        self.OLLAMA_API_KEY: str = _env("OLLAMA_API_KEY", "ollama")  # placeholder, often unused
        self.OLLAMA_BASE_URL: str = _env("OLLAMA_BASE_URL", "http://localhost:11434/v1")
        self.OLLAMA_MODEL: str = _env("OLLAMA_MODEL", "llama3.1")

        # MCP server
        self.MCP_SERVERS_FILE: str = _env("MCP_SERVERS_FILE")
        self.MCP_SERVER_NAME: str = _env("MCP_SERVER_NAME")
        self.MCP_SERVER_COMMAND: str = _env("MCP_SERVER_COMMAND", DEFAULT_SERVER_COMMAND)
        self.MCP_SERVER_ARGS: str = _env("MCP_SERVER_ARGS", DEFAULT_SERVER_ARGS)
        self.MCP_TIMEOUT_SECONDS: float = _env_float("MCP_TIMEOUT_SECONDS", 30.0)

        # CLI
        self.CLI_THEME: str = _env("CLI_THEME", "dark").lower()
        self.CLI_COLOR: str = _env("CLI_COLOR").lower()
        self.LOG_LEVEL: str = _env("LOG_LEVEL", "WARNING").upper()

    def validate(self) -> None:
        """
        Validate that the selected completion provider has everything it needs.

        Raises:
            ConfigurationError: on any missing or invalid setting
        """
        provider = self.COMPLETION_PROVIDER
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported COMPLETION_PROVIDER '{provider}'. "
                f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        required: Dict[str, str] = {}
        if provider == "openai":
            required = {
                "OPENAI_API_KEY": self.OPENAI_API_KEY,
                "OPENAI_MODEL": self.OPENAI_MODEL,
            }
        elif provider == "azure":
            required = {
                "AZURE_OPENAI_ENDPOINT": self.AZURE_OPENAI_ENDPOINT,
                "AZURE_OPENAI_API_KEY": self.AZURE_OPENAI_API_KEY,
                "AZURE_OPENAI_DEPLOYMENT": self.AZURE_OPENAI_DEPLOYMENT,
            }
        elif provider == "ollama":
            required = {
                "OLLAMA_BASE_URL": self.OLLAMA_BASE_URL,
                "OLLAMA_MODEL": self.OLLAMA_MODEL,
            }

        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required settings for provider '{provider}': {', '.join(missing)}"
            )

        if self.COMPLETION_TIMEOUT_SECONDS <= 0 or self.MCP_TIMEOUT_SECONDS <= 0:
            raise ConfigurationError("Timeouts must be positive numbers of seconds")

        # Resolving the server surfaces file/name problems before the first turn
        self.mcp_server()

    def mcp_server(self) -> McpServerConfig:
        """
        Resolve the MCP server to launch.

        MCP_SERVERS_FILE wins when set; MCP_SERVER_NAME picks an entry (first by default).
        Otherwise the command and args come from MCP_SERVER_COMMAND / MCP_SERVER_ARGS.
        """
        if self.MCP_SERVERS_FILE:
            servers = load_servers_file(self.MCP_SERVERS_FILE)
            if self.MCP_SERVER_NAME:
                if self.MCP_SERVER_NAME not in servers:
                    raise ConfigurationError(
                        f"MCP server '{self.MCP_SERVER_NAME}' not found in {self.MCP_SERVERS_FILE}"
                    )
                return servers[self.MCP_SERVER_NAME]
            return next(iter(servers.values()))

        if not self.MCP_SERVER_COMMAND:
            raise ConfigurationError("MCP_SERVER_COMMAND must not be empty")
        try:
            args = shlex.split(self.MCP_SERVER_ARGS)
        except ValueError as e:
            raise ConfigurationError(f"MCP_SERVER_ARGS could not be parsed: {e}")
        return McpServerConfig(
            name=self.MCP_SERVER_NAME or DEFAULT_SERVER_NAME,
            command=self.MCP_SERVER_COMMAND,
            args=args,
        )

    @property
    def model(self) -> str:
        """Model or deployment identifier for the selected provider."""
        if self.COMPLETION_PROVIDER == "azure":
            return self.AZURE_OPENAI_DEPLOYMENT
        if self.COMPLETION_PROVIDER == "ollama":
            return self.OLLAMA_MODEL
        return self.OPENAI_MODEL

    @property
    def use_color(self) -> Optional[bool]:
        if self.CLI_COLOR in ("1", "true", "yes", "on"):
            return True
        if self.CLI_COLOR in ("0", "false", "no", "off"):
            return False
        return None


__all__ = ["Config", "McpServerConfig", "load_servers_file", "SUPPORTED_PROVIDERS"]
