"""
Chat session: the turn-by-turn state machine.

    AWAITING_USER_INPUT -> AWAITING_MODEL_REPLY -> (PLAIN | TOOL_CALL) -> AWAITING_USER_INPUT
                                         any --quit/exit--> TERMINATED

A turn makes at most two completion calls: one for the user's message and,
when the reply is a tool call for a known tool, one more after the tool result
has been appended as a system message.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional, TYPE_CHECKING

from mcp_console.abstractions.dto.tools import UNKNOWN_TOOL, PlainReply, ToolInvocation
from mcp_console.domain.entities.agent_turn import AgentTurn
from mcp_console.domain.entities.conversation import ConversationState
from mcp_console.infrastructure.llm.prompts import build_system_prompt
from mcp_console.infrastructure.llm.response_interpreter import ResponseInterpreter

if TYPE_CHECKING:
    from mcp_console.interfaces.services.llm import ICompletionProvider
    from mcp_console.interfaces.services.tools import IToolCatalog, IToolDispatcher

logger = logging.getLogger(__name__)

QUIT_COMMANDS = frozenset({"quit", "exit"})


class SessionState(enum.Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    AWAITING_MODEL_REPLY = "awaiting_model_reply"
    PLAIN = "plain"
    TOOL_CALL = "tool_call"
    TERMINATED = "terminated"


class ChatSession:
    """
    Drives one conversation. Owns its ConversationState exclusively.
    """

    def __init__(
        self,
        completion: "ICompletionProvider",
        catalog: "IToolCatalog",
        dispatcher: "IToolDispatcher",
        interpreter: Optional[ResponseInterpreter] = None,
        conversation: Optional[ConversationState] = None,
    ) -> None:
        self.completion = completion
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.interpreter = interpreter or ResponseInterpreter()
        self.conversation = conversation if conversation is not None else ConversationState()
        self.state = SessionState.AWAITING_USER_INPUT
        self._started = False

    @property
    def terminated(self) -> bool:
        return self.state is SessionState.TERMINATED

    def start(self) -> None:
        """
        Fetch the catalog once and append the system prompt.

        Raises:
            ProviderUnavailable: if the tool provider cannot be reached
        """
        if self._started:
            return
        tools = self.catalog.snapshot()
        self.conversation.add_system(build_system_prompt(tools))
        self._started = True

    def step(self, user_input: Optional[str]) -> AgentTurn:
        """
        Process one line of user input.

        Raises:
            CompletionUnavailable: when the completion provider fails (fatal to this turn)
        """
        if self.terminated:
            return AgentTurn(status="terminated")

        text = (user_input or "").strip()
        if not text:
            return AgentTurn(status="reprompt")

        if text.lower() in QUIT_COMMANDS:
            self.state = SessionState.TERMINATED
            return AgentTurn(status="terminated", user_input=text)

        self.start()
        self.conversation.add_user(text)
        turn = AgentTurn(status="completed", user_input=text)

        self.state = SessionState.AWAITING_MODEL_REPLY
        try:
            raw = self.completion.complete(self.conversation.messages)
            turn.raw_reply = raw
            reply = self.interpreter.interpret(raw)

            if isinstance(reply, ToolInvocation):
                self.state = SessionState.TOOL_CALL
                self._handle_tool_call(turn, reply)
            else:
                self.state = SessionState.PLAIN
                self._handle_plain(turn, reply)
        finally:
            if not self.terminated:
                self.state = SessionState.AWAITING_USER_INPUT
        return turn

    def _handle_plain(self, turn: AgentTurn, reply: PlainReply) -> None:
        self.conversation.add_assistant(reply.text)
        turn.final_response = reply.text

    def _handle_tool_call(self, turn: AgentTurn, invocation: ToolInvocation) -> None:
        raw = turn.raw_reply or ""
        turn.tool_call = invocation
        self.conversation.add_assistant(raw)

        outcome = self.dispatcher.dispatch(invocation, self.catalog.snapshot())
        if outcome is UNKNOWN_TOOL:
            # The raw reply stands as the answer; no corrective context.
            turn.unknown_tool = True
            turn.final_response = raw
            return

        turn.tool_result = outcome
        self.conversation.add_system(outcome.text)

        final = self.completion.complete(self.conversation.messages)
        self.conversation.add_assistant(final)
        turn.final_response = final

    def run(self, read_input: Callable[[], Optional[str]], on_turn: Callable[[AgentTurn], None]) -> None:
        """
        Loop until quit/exit or read_input() returns None (end of input).
        """
        self.start()
        while not self.terminated:
            line = read_input()
            if line is None:
                self.state = SessionState.TERMINATED
                break
            on_turn(self.step(line))


__all__ = ["ChatSession", "SessionState", "QUIT_COMMANDS"]
