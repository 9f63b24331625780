import pytest

from mcp_console.abstractions.dto.tools import ToolInvocation
from mcp_console.abstractions.errors import CompletionUnavailable, ProviderUnavailable, ToolExecutionFault
from mcp_console.agents.chat_session import ChatSession, SessionState
from mcp_console.infrastructure.tools.catalog_adapter import ToolCatalog
from mcp_console.infrastructure.tools.invocation_adapter import ToolDispatcher

from conftest import FakeCompletion, FakeToolProvider


def make_session(provider, replies):
    completion = FakeCompletion(replies)
    session = ChatSession(
        completion=completion,
        catalog=ToolCatalog(provider),
        dispatcher=ToolDispatcher(provider),
    )
    return session, completion


def roles(session):
    return [m.role for m in session.conversation]


def test_start_appends_system_prompt_once(tool_provider):
    session, _ = make_session(tool_provider, [])
    session.start()
    session.start()

    assert roles(session) == ["system"]
    prompt = session.conversation.last().content
    assert "Tool: list_directory" in prompt
    assert "- path: Directory to list (Required)" in prompt
    assert '"tool": "tool-name"' in prompt
    assert tool_provider.list_calls == 1


def test_scenario_a_tool_call_then_final_answer(tool_provider):
    raw = '{"tool":"list_directory","arguments":{"path":"/tmp"}}'
    session, completion = make_session(tool_provider, [raw, "There are two files: a.txt and b.txt."])

    turn = session.step("list files in /tmp")

    assert turn.status == "completed"
    assert turn.raw_reply == raw
    assert turn.tool_call == ToolInvocation("list_directory", {"path": "/tmp"})
    assert turn.tool_result.success
    assert turn.tool_result.text == "a.txt\nb.txt"
    assert turn.final_response == "There are two files: a.txt and b.txt."
    assert tool_provider.calls == [("list_directory", {"path": "/tmp"})]

    assert roles(session) == ["system", "user", "assistant", "system", "assistant"]
    messages = session.conversation.messages
    assert messages[2].content == raw
    assert messages[3].content == "a.txt\nb.txt"

    # The second request sees the tool result as corrective context
    assert len(completion.requests) == 2
    assert completion.requests[1][-1].role == "system"
    assert completion.requests[1][-1].content == "a.txt\nb.txt"
    assert session.state is SessionState.AWAITING_USER_INPUT


def test_scenario_b_plain_answer(tool_provider):
    session, completion = make_session(tool_provider, ["The capital of France is Paris."])

    turn = session.step("What is the capital of France?")

    assert turn.final_response == "The capital of France is Paris."
    assert turn.tool_call is None and turn.tool_result is None
    assert tool_provider.calls == []
    assert len(completion.requests) == 1
    assert roles(session) == ["system", "user", "assistant"]


def test_scenario_c_unknown_tool_keeps_raw_reply(tool_provider):
    raw = '{"tool":"nonexistent_tool","arguments":{}}'
    session, completion = make_session(tool_provider, [raw])

    turn = session.step("do something odd")

    assert turn.unknown_tool
    assert turn.final_response == raw
    assert turn.tool_result is None
    assert tool_provider.calls == []
    assert len(completion.requests) == 1
    assert roles(session) == ["system", "user", "assistant"]
    assert session.conversation.last().content == raw


@pytest.mark.parametrize("blank", ["", "   ", "\t\n", None])
def test_scenario_d_blank_input_reprompts(tool_provider, blank):
    session, completion = make_session(tool_provider, [])
    session.start()
    before = session.conversation.messages

    turn = session.step(blank)

    assert turn.status == "reprompt"
    assert session.conversation.messages == before
    assert completion.requests == []
    assert session.state is SessionState.AWAITING_USER_INPUT


@pytest.mark.parametrize("command", ["quit", "QUIT", "Exit", "  exit  "])
def test_scenario_e_quit_terminates_without_provider_calls(tool_provider, command):
    session, completion = make_session(tool_provider, [])

    turn = session.step(command)

    assert turn.status == "terminated"
    assert session.terminated
    assert completion.requests == []
    assert tool_provider.list_calls == 0
    assert tool_provider.calls == []
    assert session.step("hello").status == "terminated"


def test_malformed_tool_call_is_plain_answer(tool_provider):
    raw = '{"tool": "list_directory", "arguments": [1, 2]}'
    session, _ = make_session(tool_provider, [raw])

    turn = session.step("list")

    assert turn.final_response == raw
    assert turn.tool_call is None
    assert tool_provider.calls == []


def test_tool_fault_is_fed_back_as_context():
    provider = FakeToolProvider(responses={"echo": ToolExecutionFault("permission denied")})
    raw = '{"tool": "echo", "arguments": {"message": "hi"}}'
    session, completion = make_session(provider, [raw, "Sorry, the tool failed."])

    turn = session.step("echo hi")

    assert not turn.tool_result.success
    assert turn.tool_result.text == "tool execution error: permission denied"
    assert completion.requests[1][-1].content == "tool execution error: permission denied"
    assert turn.final_response == "Sorry, the tool failed."


def test_user_text_is_trimmed_but_case_preserved(tool_provider):
    session, completion = make_session(tool_provider, ["ok"])
    session.step("  List Files In /TMP  ")
    assert completion.requests[0][-1].content == "List Files In /TMP"


def test_catalog_fetched_once_across_turns(tool_provider):
    raw = '{"tool":"list_directory","arguments":{"path":"/tmp"}}'
    session, _ = make_session(tool_provider, [raw, "first", raw, "second"])

    session.step("one")
    session.step("two")

    assert tool_provider.list_calls == 1
    assert len(tool_provider.calls) == 2


def test_completion_failure_propagates_and_session_continues(tool_provider):
    session, _ = make_session(tool_provider, [CompletionUnavailable("503"), "recovered"])

    with pytest.raises(CompletionUnavailable):
        session.step("hello")
    assert session.state is SessionState.AWAITING_USER_INPUT

    turn = session.step("hello again")
    assert turn.final_response == "recovered"


def test_start_propagates_provider_unavailable():
    provider = FakeToolProvider(list_error=ProviderUnavailable("npx not found"))
    session, _ = make_session(provider, [])
    with pytest.raises(ProviderUnavailable):
        session.start()
    assert len(session.conversation) == 0


def test_run_loops_until_quit(tool_provider):
    session, completion = make_session(tool_provider, ["Paris."])
    lines = iter(["", "capital of France?", "quit", "never read"])
    turns = []

    session.run(lambda: next(lines), turns.append)

    assert [t.status for t in turns] == ["reprompt", "completed", "terminated"]
    assert len(completion.requests) == 1
    assert next(lines) == "never read"


def test_run_stops_at_end_of_input(tool_provider):
    session, completion = make_session(tool_provider, [])
    turns = []
    session.run(lambda: None, turns.append)

    assert turns == []
    assert session.terminated
    assert completion.requests == []
