"""
OpenAI-compatible completion provider.

Supports:
- OpenAI (https://api.openai.com/v1) and any OpenAI-compatible base URL
- Azure OpenAI deployments (AzureOpenAI client)
- Ollama (http://localhost:11434/v1)

Behavior:
- Sends the full ordered conversation as chat-completions messages
- Returns the first choice's text
- Wraps every SDK failure, and empty replies, in CompletionUnavailable
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from openai import AzureOpenAI, OpenAI, OpenAIError

from mcp_console.abstractions.errors import CompletionUnavailable, ConfigurationError

if TYPE_CHECKING:
    from mcp_console.domain.entities.conversation import ConversationMessage
    from mcp_console.infrastructure.config import Config

logger = logging.getLogger(__name__)


class OpenAICompletionProvider:
    """
    Example usage for Ollama:
        provider = OpenAICompletionProvider(
            client=OpenAI(api_key="ollama", base_url="http://localhost:11434/v1"),
            model="llama3.1",
        )
        provider.complete(state.messages)
    """

    def __init__(self, client: Any, model: str, temperature: Optional[float] = None, provider_name: str = "openai") -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.provider_name = provider_name

    @classmethod
    def from_config(cls, config: "Config") -> "OpenAICompletionProvider":
        provider = config.COMPLETION_PROVIDER
        timeout = config.COMPLETION_TIMEOUT_SECONDS
        if provider == "azure":
            client = AzureOpenAI(
                azure_endpoint=config.AZURE_OPENAI_ENDPOINT,
                api_key=config.AZURE_OPENAI_API_KEY,
                api_version=config.AZURE_OPENAI_API_VERSION,
                timeout=timeout,
            )
        elif provider == "ollama":
            client = OpenAI(api_key=config.OLLAMA_API_KEY, base_url=config.OLLAMA_BASE_URL, timeout=timeout)
        elif provider == "openai":
            client = OpenAI(api_key=config.OPENAI_API_KEY, base_url=config.OPENAI_BASE_URL or None, timeout=timeout)
        else:
            raise ConfigurationError(f"Unsupported COMPLETION_PROVIDER '{provider}'")
        return cls(client=client, model=config.model, temperature=config.COMPLETION_TEMPERATURE, provider_name=provider)

    @property
    def base_url(self) -> str:
        return str(getattr(self.client, "base_url", "") or "")

    def _build_messages(self, messages: Sequence["ConversationMessage"]) -> List[dict]:
        return [{"role": m.role, "content": m.content} for m in messages]

    def complete(self, messages: Sequence["ConversationMessage"]) -> str:
        kwargs: dict = {
            "model": self.model,
            "messages": self._build_messages(messages),
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        try:
            resp = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise CompletionUnavailable(f"{self.provider_name} completion failed: {e}") from e

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise CompletionUnavailable(f"{self.provider_name} returned no choices")
        text = getattr(choices[0].message, "content", None) or ""
        if not text.strip():
            raise CompletionUnavailable(f"{self.provider_name} returned empty response text")
        logger.debug("Completion from %s (%d chars)", self.model, len(text))
        return text


__all__ = ["OpenAICompletionProvider"]
