import pytest

from mcp_console.domain.entities.conversation import ConversationMessage, ConversationState


def test_messages_keep_append_order():
    state = ConversationState()
    state.add_system("sys")
    state.add_user("hi")
    state.add_assistant("hello")

    assert [m.role for m in state] == ["system", "user", "assistant"]
    assert state.last() == ConversationMessage("assistant", "hello")
    assert state.to_dicts()[1] == {"role": "user", "content": "hi"}
    assert len(state) == 3


def test_messages_view_is_a_snapshot():
    state = ConversationState()
    state.add_user("one")
    view = state.messages
    state.add_user("two")

    assert len(view) == 1
    assert isinstance(view, tuple)


def test_unknown_role_is_rejected():
    state = ConversationState()
    with pytest.raises(ValueError):
        state.append("tool", "result")
    assert len(state) == 0


def test_messages_are_immutable():
    message = ConversationMessage("user", "hi")
    with pytest.raises(AttributeError):
        message.content = "changed"
