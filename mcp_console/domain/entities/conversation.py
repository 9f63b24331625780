"""
POCO conversation log. No framework dependencies.

The message order is the model's entire context, so the log only ever grows.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Literal, Tuple

Role = Literal["system", "user", "assistant"]

_ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ConversationMessage:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationState:
    """Append-only ordered sequence of role-tagged messages owned by one session."""

    def __init__(self) -> None:
        self._messages: List[ConversationMessage] = []

    def append(self, role: Role, content: str) -> ConversationMessage:
        if role not in _ROLES:
            raise ValueError(f"Unknown message role: {role!r}")
        message = ConversationMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def add_system(self, content: str) -> ConversationMessage:
        return self.append("system", content)

    def add_user(self, content: str) -> ConversationMessage:
        return self.append("user", content)

    def add_assistant(self, content: str) -> ConversationMessage:
        return self.append("assistant", content)

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._messages)

    def last(self) -> ConversationMessage:
        return self._messages[-1]

    def to_dicts(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ConversationMessage]:
        return iter(tuple(self._messages))


__all__ = ["Role", "ConversationMessage", "ConversationState"]
