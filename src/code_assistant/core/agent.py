"""Agent - tool-calling loop orchestrator."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from code_assistant.config import AgentConfig
from code_assistant.core.conversation import ConversationManager, Role, ToolCall
from code_assistant.core.llm import ChatResponse, LLMClient
from code_assistant.core.metrics import Metrics, MetricsSnapshot
from code_assistant.core.observer import AgentObserver
from code_assistant.core.registry import ToolDefinition, ToolKind, ToolRegistry
from code_assistant.errors import InvalidInputError, RoundLimitExceeded, ToolArgumentsError
from code_assistant.state.session import SessionSnapshot

_log = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """Final answer of a turn plus the usage stats of the last endpoint response."""

    content: str
    usage: dict[str, Any] = field(default_factory=dict)
    rounds: int = 0


def decode_arguments(raw: str) -> dict[str, Any]:
    """Decode model-supplied tool arguments.

    Raises:
        ToolArgumentsError: If the string is not valid JSON or not an object.
    """
    if not raw or not raw.strip():
        return {}
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError:
        raise ToolArgumentsError(f"Invalid JSON in tool arguments: {raw}") from None
    if not isinstance(arguments, dict):
        raise ToolArgumentsError(f"Tool arguments must be a JSON object, got {type(arguments).__name__}")
    return arguments


def serialize_result(result: Any) -> str:
    return json.dumps(result, default=str, ensure_ascii=False)


class Agent:
    """Drives user turns through model round-trips and tool execution.

    One turn runs at a time per agent; concurrent process_message() calls
    wait on an internal lock.
    """

    def __init__(
        self,
        config: AgentConfig,
        llm_client: LLMClient | None = None,
        registry: ToolRegistry | None = None,
        observer: AgentObserver | None = None,
        system_prompt: str = "",
    ) -> None:
        """Initialize the agent.

        Args:
            config: AgentConfig with model, budget and loop settings
            llm_client: Client with an async complete(request) method (defaults to LLMClient)
            registry: ToolRegistry owned by this agent (defaults to an empty one)
            observer: Receives history and tool notifications (optional)
            system_prompt: Initial system prompt
        """
        self.config = config
        self.llm_client = llm_client or LLMClient(config)
        self.registry = registry or ToolRegistry()
        self.observer = observer or AgentObserver()
        self.conversation = ConversationManager(
            system_prompt,
            observer=self.observer,
            chars_per_token=config.chars_per_token,
        )
        self.metrics = Metrics()
        self.active_session: SessionSnapshot | None = None
        self._turn_lock = asyncio.Lock()
        self._turn_tokens = 0

    # ── Setup ──────────────────────────────────────────────────────────────

    def register_tool(
        self,
        name: str,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        handler: Callable[[dict[str, Any]], Any] | None = None,
    ) -> ToolDefinition:
        return self.registry.register(name, description, input_schema, handler, kind=ToolKind.CUSTOM)

    def set_system_prompt(self, prompt: str) -> None:
        self.conversation.system_prompt = prompt

    @property
    def system_prompt(self) -> str:
        return self.conversation.system_prompt

    def clear_history(self) -> None:
        self.conversation.clear()

    # ── Turn processing ────────────────────────────────────────────────────

    async def process_message(self, user_input: Any) -> TurnResult:
        """Run one user turn until the model produces a text answer.

        Args:
            user_input: The user's message; must be a non-empty string

        Returns:
            TurnResult with the assistant text and final usage stats

        Raises:
            InvalidInputError: Before any network call, for non-string or blank input.
            ApiError, EndpointTimeoutError: Endpoint failures abort the turn.
            RoundLimitExceeded: The model kept requesting tools past max_tool_rounds.
        """
        if not isinstance(user_input, str) or not user_input.strip():
            self.metrics.record_outcome(0.0, False)
            raise InvalidInputError("User input must be a non-empty string")

        async with self._turn_lock:
            start = time.perf_counter()
            self._turn_tokens = 0
            try:
                result = await self._run_turn(user_input)
            except Exception:
                self.metrics.record_outcome(self._elapsed_ms(start), False, self._turn_tokens)
                raise
            self.metrics.record_outcome(self._elapsed_ms(start), True, self._turn_tokens)
            return result

    async def _run_turn(self, user_input: str) -> TurnResult:
        self.conversation.add_message(Role.USER, user_input)

        rounds = 0
        while True:
            response = await self._request_completion()

            if not response.has_tool_calls:
                self.conversation.add_message(Role.ASSISTANT, response.content)
                return TurnResult(content=response.content, usage=response.usage, rounds=rounds)

            rounds += 1
            if rounds > self.config.max_tool_rounds:
                raise RoundLimitExceeded(self.config.max_tool_rounds)

            # Text alongside tool calls is not terminal; it is kept on the tool-call message
            results = [await self._execute_tool_call(tc) for tc in response.tool_calls]

            self.conversation.add_assistant_tool_call(response.content, response.tool_calls)
            for tool_call, content in zip(response.tool_calls, results):
                self.conversation.add_tool_result(tool_call.id, content)

    async def _request_completion(self) -> ChatResponse:
        self.conversation.prune_if_needed(
            self.config.context_window_limit,
            threshold=self.config.prune_threshold,
            retain_count=self.config.retain_count,
        )
        request = self.conversation.build_request(self.config, self.registry.openai_schemas())
        response = await self.llm_client.complete(request)
        self._turn_tokens += response.total_tokens
        return response

    async def _execute_tool_call(self, tool_call: ToolCall) -> str:
        """Run one tool call and return the serialized tool result.

        Failures never propagate; they become {"error": message} so the model
        can see them on the next round.
        """
        arguments: dict[str, Any] = {}
        try:
            arguments = decode_arguments(tool_call.arguments)
            self.observer.on_tool_call(tool_call.name, arguments)
            result = await self.registry.execute(
                tool_call.name, arguments, timeout=self.config.tool_timeout
            )
        except Exception as e:
            _log.info("Tool %s failed: %s", tool_call.name, e)
            self.observer.on_tool_error(tool_call.name, e)
            return serialize_result({"error": str(e)})

        self.observer.on_tool_executed(tool_call.name, arguments, result)
        return serialize_result(result)

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000

    # ── Metrics & sessions ─────────────────────────────────────────────────

    def get_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    def save_session(self, session_id: str) -> SessionSnapshot:
        snapshot = SessionSnapshot(
            id=session_id,
            messages=tuple(self.conversation.get_messages()),
            system_prompt=self.conversation.system_prompt,
            config=self.config.public_dict(),
        )
        self.active_session = snapshot
        return snapshot

    def load_session(self, snapshot: SessionSnapshot) -> None:
        """Replace the conversation with the snapshot's log and system prompt."""
        self.conversation.replace(list(snapshot.messages), snapshot.system_prompt)
        self.active_session = snapshot
