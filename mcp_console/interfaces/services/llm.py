"""
Completion service port. The session depends on this; infra implements.
"""
from __future__ import annotations
from typing import Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_console.domain.entities.conversation import ConversationMessage

class ICompletionProvider(Protocol):
    @property
    def model(self) -> str:
        ...
    def complete(self, messages: Sequence["ConversationMessage"]) -> str:
        """
        Produce exactly one reply for the ordered messages.
        Failures must raise CompletionUnavailable.
        """
        ...

__all__ = ["ICompletionProvider"]
