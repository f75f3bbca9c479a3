"""Conversation state: message log, system prompt and request building."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from code_assistant.core.observer import AgentObserver

_log = logging.getLogger(__name__)

DEFAULT_CHARS_PER_TOKEN = 4.0


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A model-requested tool invocation. ``arguments`` is the raw JSON string."""

    id: str
    name: str
    arguments: str

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_openai(cls, data: dict[str, Any]) -> "ToolCall":
        fn = data.get("function", {})
        arguments = fn.get("arguments", "")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(id=data.get("id", ""), name=fn.get("name", ""), arguments=arguments)


@dataclass(frozen=True)
class Message:
    """One turn in the conversation. Immutable once created."""

    role: Role
    content: str
    timestamp: float = field(default_factory=time.time)
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None

    def to_api(self) -> dict[str, Any]:
        """Serialize in the shape the chat completion endpoint accepts."""
        if self.role is Role.ASSISTANT and self.tool_calls:
            return {
                "role": "assistant",
                "content": self.content or None,
                "tool_calls": [tc.to_openai() for tc in self.tool_calls],
            }
        if self.role is Role.TOOL:
            return {"role": "tool", "tool_call_id": self.tool_call_id, "content": self.content}
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.tool_calls:
            data["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=Role(data["role"]),
            content=data.get("content") or "",
            timestamp=data.get("timestamp", time.time()),
            tool_calls=tuple(ToolCall.from_openai(tc) for tc in data.get("tool_calls") or []),
            tool_call_id=data.get("tool_call_id"),
        )


class ConversationManager:
    """Manages message history for LLM context.

    The system prompt is held separately and only prepended when a request is
    built, so pruning and clearing never touch it.
    """

    def __init__(
        self,
        system_prompt: str = "",
        observer: AgentObserver | None = None,
        chars_per_token: float = DEFAULT_CHARS_PER_TOKEN,
    ) -> None:
        """Initialize the conversation.

        Args:
            system_prompt: The system prompt to use (may be empty)
            observer: Receives history notifications (optional)
            chars_per_token: Divisor used by estimate_tokens()
        """
        self._messages: list[Message] = []
        self.system_prompt = system_prompt
        self.observer = observer or AgentObserver()
        self.chars_per_token = chars_per_token

    def add_message(
        self,
        role: Role | str,
        content: str,
        tool_calls: list[ToolCall] | tuple[ToolCall, ...] | None = None,
        tool_call_id: str | None = None,
    ) -> Message:
        """Append a message to the conversation history.

        Args:
            role: One of "user", "assistant", "system", "tool"
            content: The message content
            tool_calls: Call descriptors for an assistant tool-call message
            tool_call_id: Linking id for a tool result message

        Returns:
            The appended Message
        """
        message = Message(
            role=Role(role),
            content=content or "",
            tool_calls=tuple(tool_calls or ()),
            tool_call_id=tool_call_id,
        )
        self._messages.append(message)
        self.observer.on_history_updated(message)
        return message

    def add_assistant_tool_call(self, content: str, tool_calls: list[ToolCall]) -> Message:
        """Append an assistant message carrying native tool calls."""
        return self.add_message(Role.ASSISTANT, content, tool_calls=tool_calls)

    def add_tool_result(self, tool_call_id: str, content: str) -> Message:
        """Append a tool result linked to its call."""
        return self.add_message(Role.TOOL, content, tool_call_id=tool_call_id)

    def get_messages(self) -> list[Message]:
        """Return a copy of the message log."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def api_messages(self) -> list[dict[str, Any]]:
        """Return the outbound message list: system prompt first, then the log."""
        messages: list[dict[str, Any]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        # System prompt is never duplicated, even if a loaded log carries one
        messages.extend(m.to_api() for m in self._messages if m.role is not Role.SYSTEM)
        return messages

    def build_request(self, config: Any, tools: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Build the chat completion payload.

        Args:
            config: Object with model, max_tokens and temperature attributes
            tools: OpenAI-format tool schemas; omitted from the payload when empty

        Returns:
            Request dict with model, max_tokens, temperature, messages and optional tools
        """
        request: dict[str, Any] = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": self.api_messages(),
        }
        if tools:
            request["tools"] = tools
        return request

    def estimate_tokens(self) -> int:
        """Estimate request tokens as serialized character length / chars_per_token."""
        return int(len(json.dumps(self.api_messages())) / self.chars_per_token)

    def rounds(self) -> list[list[Message]]:
        """Group the log into rounds, each starting at a user message.

        A round holds the user message and every assistant and tool message up
        to the next user message, so tool calls stay with their results.
        """
        rounds: list[list[Message]] = []
        for message in self._messages:
            if message.role is Role.USER or not rounds:
                rounds.append([message])
            else:
                rounds[-1].append(message)
        return rounds

    def prune_if_needed(self, token_budget: int, threshold: float = 0.8, retain_count: int = 25) -> int:
        """Drop the oldest whole rounds when the estimate exceeds threshold * token_budget.

        Only the newest retain_count rounds survive. The newest round is
        always kept.

        Args:
            token_budget: Context window size in tokens
            threshold: Fraction of the budget that triggers pruning
            retain_count: Number of rounds to keep

        Returns:
            Number of messages removed
        """
        estimate = self.estimate_tokens()
        if estimate <= token_budget * threshold:
            return 0

        rounds = self.rounds()
        dropped = rounds[: max(len(rounds) - max(retain_count, 1), 0)]
        removed = sum(len(r) for r in dropped)
        if removed:
            self._messages = self._messages[removed:]
            kept = len(self._messages)
            _log.debug(
                "Pruned %d messages (%d rounds); estimate was %d tokens, budget %d",
                removed, len(dropped), estimate, token_budget,
            )
            self.observer.on_context_pruned(removed, kept)
        return removed

    def clear(self) -> None:
        """Clear all messages. The system prompt is kept."""
        self._messages = []
        self.observer.on_history_cleared()

    def replace(self, messages: list[Message], system_prompt: str) -> None:
        """Replace the log and system prompt wholesale (session load)."""
        self._messages = list(messages)
        self.system_prompt = system_prompt

    def to_dicts(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._messages]

    @staticmethod
    def from_dicts(data: list[dict[str, Any]]) -> list[Message]:
        return [Message.from_dict(d) for d in data]
