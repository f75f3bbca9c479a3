"""Shared pytest fixtures and helpers for code_assistant tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from code_assistant.config import AgentConfig
from code_assistant.core.conversation import ToolCall
from code_assistant.core.llm import ChatResponse
from code_assistant.core.observer import AgentObserver
from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.guard import ToolGuard


@pytest.fixture
def workspace(tmp_path):
    """A temporary directory that acts as the workspace root."""
    return tmp_path


@pytest.fixture
def guard(workspace):
    return ToolGuard(workspace_root=str(workspace), policy={})


@pytest.fixture
def config():
    return AgentConfig(model="groq/llama3-8b-8192", api_base="http://localhost:4000")


# ── Plain helper functions ─────────────────────────────────────────────────
# Each test file imports these directly:
#   from conftest import assert_ok, assert_fail, make_file, FakeLLMClient

def make_file(workspace: Path, relative_path: str, content: str = "hello\n") -> Path:
    p = workspace / relative_path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


def assert_ok(result: ToolResult) -> None:
    assert result.ok, f"Expected ok=True but got error: {result.error_code}: {result.message}"


def assert_fail(result: ToolResult, error_code: str | None = None) -> None:
    assert not result.ok, f"Expected ok=False but result succeeded: {result.message}"
    if error_code:
        assert result.error_code == error_code, (
            f"Expected error_code={error_code!r}, got {result.error_code!r}"
        )


def text_response(content: str, total_tokens: int = 10) -> ChatResponse:
    return ChatResponse(content=content, usage={"total_tokens": total_tokens})


def tool_response(*calls: tuple[str, str, Any], content: str = "", total_tokens: int = 10) -> ChatResponse:
    """Build a response requesting tools. Each call is (id, name, arguments)."""
    tool_calls = [
        ToolCall(id=call_id, name=name, arguments=args if isinstance(args, str) else json.dumps(args))
        for call_id, name, args in calls
    ]
    return ChatResponse(content=content, tool_calls=tool_calls, usage={"total_tokens": total_tokens})


class FakeLLMClient:
    """Returns scripted responses in order and records every request it receives."""

    def __init__(self, responses: list[ChatResponse | Exception]) -> None:
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    async def complete(self, request: dict[str, Any]) -> ChatResponse:
        # Copy the message list; the conversation keeps growing after the call
        self.requests.append({**request, "messages": list(request["messages"])})
        if not self._responses:
            raise AssertionError("FakeLLMClient ran out of scripted responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingObserver(AgentObserver):
    """Observer that keeps (event, payload) tuples in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_history_updated(self, message) -> None:
        self.events.append(("history_updated", message))

    def on_history_cleared(self) -> None:
        self.events.append(("history_cleared", None))

    def on_context_pruned(self, removed: int, kept: int) -> None:
        self.events.append(("context_pruned", (removed, kept)))

    def on_tool_call(self, name: str, arguments: dict[str, Any]) -> None:
        self.events.append(("tool_call", (name, arguments)))

    def on_tool_executed(self, name: str, arguments: dict[str, Any], result: Any) -> None:
        self.events.append(("tool_executed", (name, result)))

    def on_tool_error(self, name: str, error: Exception) -> None:
        self.events.append(("tool_error", (name, str(error))))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]
