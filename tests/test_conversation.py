"""Tests for ConversationManager."""

import json

import pytest

from code_assistant.config import AgentConfig
from code_assistant.core.conversation import ConversationManager, Message, Role, ToolCall
from conftest import RecordingObserver


def _add_round(conv: ConversationManager, n: int, padding: int = 100) -> None:
    """Append one tool-using round: user, assistant tool call, tool result, assistant."""
    call = ToolCall(id=f"call_{n}", name="echo", arguments=json.dumps({"msg": n}))
    conv.add_message(Role.USER, f"question {n} " + "x" * padding)
    conv.add_assistant_tool_call("", [call])
    conv.add_tool_result(call.id, json.dumps({"msg": n}))
    conv.add_message(Role.ASSISTANT, f"answer {n}")


class TestMessages:
    """Verify message log operations."""

    def test_add_message_returns_message(self):
        conv = ConversationManager("You are helpful.")
        msg = conv.add_message("user", "Hello")

        assert msg.role is Role.USER
        assert msg.content == "Hello"
        assert conv.get_messages() == [msg]

    def test_get_messages_returns_copy(self):
        conv = ConversationManager()
        conv.add_message(Role.USER, "Hello")

        conv.get_messages().clear()

        assert len(conv) == 1

    def test_invalid_role_raises(self):
        conv = ConversationManager()
        with pytest.raises(ValueError):
            conv.add_message("narrator", "Once upon a time")

    def test_messages_are_immutable(self):
        msg = Message(role=Role.USER, content="Hello")
        with pytest.raises(AttributeError):
            msg.content = "changed"

    def test_tool_call_message_to_api(self):
        conv = ConversationManager()
        call = ToolCall(id="call_1", name="file_read", arguments='{"path": "a.py"}')
        msg = conv.add_assistant_tool_call("", [call])

        assert msg.to_api() == {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "file_read", "arguments": '{"path": "a.py"}'},
            }],
        }

    def test_tool_result_to_api(self):
        conv = ConversationManager()
        msg = conv.add_tool_result("call_1", '{"ok": true}')

        assert msg.to_api() == {"role": "tool", "tool_call_id": "call_1", "content": '{"ok": true}'}

    def test_observer_notified_on_append_and_clear(self):
        observer = RecordingObserver()
        conv = ConversationManager(observer=observer)

        conv.add_message(Role.USER, "Hi")
        conv.clear()

        assert observer.names() == ["history_updated", "history_cleared"]


class TestBuildRequest:
    """Verify the outbound payload."""

    def test_system_prompt_first(self):
        conv = ConversationManager("You are helpful.")
        conv.add_message(Role.USER, "Hi")

        messages = conv.api_messages()

        assert messages == [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "Hi"},
        ]

    def test_no_system_message_when_prompt_empty(self):
        conv = ConversationManager("")
        conv.add_message(Role.USER, "Hi")

        assert conv.api_messages() == [{"role": "user", "content": "Hi"}]

    def test_system_prompt_not_duplicated(self):
        """A system message in the log is never sent alongside the system prompt."""
        conv = ConversationManager("You are helpful.")
        conv.replace(
            [Message(role=Role.SYSTEM, content="old prompt"), Message(role=Role.USER, content="Hi")],
            "You are helpful.",
        )

        messages = conv.api_messages()

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == "You are helpful."

    def test_request_fields(self):
        config = AgentConfig(model="test-model", temperature=0.3, max_tokens=123)
        conv = ConversationManager("sys")
        conv.add_message(Role.USER, "Hi")
        tools = [{"type": "function", "function": {"name": "echo", "parameters": {}}}]

        request = conv.build_request(config, tools)

        assert request["model"] == "test-model"
        assert request["temperature"] == 0.3
        assert request["max_tokens"] == 123
        assert request["messages"] == conv.api_messages()
        assert request["tools"] == tools

    def test_tools_omitted_when_empty(self):
        config = AgentConfig(model="test-model")
        conv = ConversationManager("sys")

        assert "tools" not in conv.build_request(config, [])
        assert "tools" not in conv.build_request(config)


class TestEstimateTokens:
    """Token estimate is serialized length / chars_per_token."""

    def test_includes_system_prompt(self):
        conv = ConversationManager("abc")
        conv.add_message(Role.USER, "hello")

        expected = int(len(json.dumps(conv.api_messages())) / 4)
        assert conv.estimate_tokens() == expected

    def test_custom_divisor(self):
        conv = ConversationManager("abc", chars_per_token=2.0)
        conv.add_message(Role.USER, "hello")

        assert conv.estimate_tokens() == int(len(json.dumps(conv.api_messages())) / 2)


class TestRounds:
    """Verify grouping of the log into rounds."""

    def test_round_starts_at_user_message(self):
        conv = ConversationManager()
        _add_round(conv, 1)
        _add_round(conv, 2)

        rounds = conv.rounds()

        assert len(rounds) == 2
        assert [m.role for m in rounds[0]] == [Role.USER, Role.ASSISTANT, Role.TOOL, Role.ASSISTANT]

    def test_leading_non_user_messages_form_a_round(self):
        conv = ConversationManager()
        conv.add_message(Role.ASSISTANT, "Welcome back")
        conv.add_message(Role.USER, "Thanks")

        rounds = conv.rounds()

        assert [[m.content for m in r] for r in rounds] == [["Welcome back"], ["Thanks"]]


class TestPruning:
    """Verify round-atomic pruning."""

    def test_no_pruning_under_threshold(self):
        conv = ConversationManager("sys")
        _add_round(conv, 1, padding=0)

        assert conv.prune_if_needed(token_budget=100_000) == 0
        assert len(conv) == 4

    def test_prunes_oldest_whole_rounds(self):
        """A long conversation keeps the newest rounds and the system prompt."""
        observer = RecordingObserver()
        conv = ConversationManager("You are helpful.", observer=observer)
        for n in range(10):
            _add_round(conv, n)

        removed = conv.prune_if_needed(token_budget=100, threshold=0.8, retain_count=2)

        assert removed == 32
        messages = conv.get_messages()
        assert len(messages) == 8
        assert messages[0].content.startswith("question 8")
        assert messages[4].content.startswith("question 9")
        assert conv.api_messages()[0] == {"role": "system", "content": "You are helpful."}
        assert ("context_pruned", (32, 8)) in observer.events

    def test_keeps_retain_count_rounds_not_messages(self):
        conv = ConversationManager("sys")
        for n in range(40):
            _add_round(conv, n)

        removed = conv.prune_if_needed(token_budget=100, threshold=0.8, retain_count=25)

        assert removed == 15 * 4
        assert len(conv.rounds()) == 25
        assert conv.get_messages()[0].content.startswith("question 15")

    def test_rounds_never_split(self):
        """Every kept tool result still has its tool-call message."""
        conv = ConversationManager("sys")
        for n in range(10):
            _add_round(conv, n)

        conv.prune_if_needed(token_budget=100, threshold=0.8, retain_count=3)

        messages = conv.get_messages()
        assert messages[0].role is Role.USER
        call_ids = {tc.id for m in messages for tc in m.tool_calls}
        for m in messages:
            if m.role is Role.TOOL:
                assert m.tool_call_id in call_ids
        assert len(messages) == 12

    def test_newest_round_always_kept(self):
        conv = ConversationManager("sys")
        _add_round(conv, 1, padding=5000)

        removed = conv.prune_if_needed(token_budget=10, threshold=0.8, retain_count=1)

        assert removed == 0
        assert len(conv) == 4

    def test_threshold_fraction(self):
        conv = ConversationManager("")
        conv.add_message(Role.USER, "a" * 400)
        conv.add_message(Role.ASSISTANT, "b")
        conv.add_message(Role.USER, "c")
        estimate = conv.estimate_tokens()

        # Exactly at threshold: no pruning
        assert conv.prune_if_needed(token_budget=estimate, threshold=1.0, retain_count=1) == 0
        # Just over threshold: oldest round goes
        assert conv.prune_if_needed(token_budget=estimate - 1, threshold=1.0, retain_count=1) == 2
        assert [m.content for m in conv.get_messages()] == ["c"]


class TestClearAndReplace:
    def test_clear_keeps_system_prompt(self):
        conv = ConversationManager("You are helpful.")
        conv.add_message(Role.USER, "Hi")

        conv.clear()

        assert len(conv) == 0
        assert conv.api_messages() == [{"role": "system", "content": "You are helpful."}]

    def test_dict_round_trip(self):
        conv = ConversationManager()
        _add_round(conv, 1)

        restored = ConversationManager.from_dicts(conv.to_dicts())

        assert restored == conv.get_messages()
