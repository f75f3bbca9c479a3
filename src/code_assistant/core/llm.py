"""LiteLLM client wrapper - chat completion calls and error translation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import litellm

from code_assistant.config import AgentConfig
from code_assistant.core.conversation import ToolCall
from code_assistant.errors import ApiError, EndpointTimeoutError

_log = logging.getLogger(__name__)


@dataclass
class ChatResponse:
    """Normalized chat completion response."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def total_tokens(self) -> int:
        return int(self.usage.get("total_tokens") or 0)


def _usage_to_dict(usage: Any) -> dict[str, Any]:
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return dict(usage)
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    return {
        key: getattr(usage, key)
        for key in ("prompt_tokens", "completion_tokens", "total_tokens")
        if hasattr(usage, key)
    }


def parse_response(response: Any) -> ChatResponse:
    """Convert a litellm ModelResponse (or an object shaped like one) to ChatResponse."""
    message = response.choices[0].message
    result = ChatResponse(
        content=message.content or "",
        usage=_usage_to_dict(getattr(response, "usage", None)),
    )
    for tc in getattr(message, "tool_calls", None) or []:
        arguments = tc.function.arguments
        if not isinstance(arguments, str):
            arguments = "" if arguments is None else str(arguments)
        result.tool_calls.append(ToolCall(id=tc.id, name=tc.function.name, arguments=arguments))
    return result


class LLMClient:
    """LiteLLM client for model communication."""

    def __init__(self, config: AgentConfig) -> None:
        self.model = config.model
        self.api_base = config.api_base
        self.api_key = config.api_key
        self.request_timeout = config.request_timeout

    def _handle_llm_error(self, error: Exception) -> None:
        """Convert exceptions from LiteLLM calls to agent errors.

        Raises:
            EndpointTimeoutError: On request timeout.
            ApiError: Always otherwise, with the HTTP status when the server sent one.
        """
        if isinstance(error, (litellm.Timeout, asyncio.TimeoutError)):
            raise EndpointTimeoutError(
                f"Request to {self.api_base} timed out after {self.request_timeout:g} seconds"
            ) from None
        if isinstance(error, litellm.APIConnectionError):
            raise ApiError(
                None,
                f"Cannot connect to {self.api_base}: {getattr(error, 'message', error)}",
            ) from None
        status_code = getattr(error, "status_code", None)
        if isinstance(status_code, int):
            raise ApiError(status_code, getattr(error, "message", None) or str(error)) from None
        raise ApiError(None, f"Unexpected error: {type(error).__name__}: {error}") from None

    async def complete(self, request: dict[str, Any]) -> ChatResponse:
        """Send a chat completion request built by ConversationManager.build_request().

        Raises:
            ApiError: Non-success status or connection failure.
            EndpointTimeoutError: The endpoint did not answer in time.
        """
        _log.debug(
            "Sending %d messages to %s (%d tools)",
            len(request.get("messages", [])), request.get("model"), len(request.get("tools", [])),
        )
        try:
            response = await litellm.acompletion(
                **request,
                api_base=self.api_base,
                api_key=self.api_key,
                timeout=self.request_timeout,
            )
        except Exception as e:
            self._handle_llm_error(e)
        return parse_response(response)

    async def verify_connection(self) -> None:
        """Send a lightweight request to confirm the endpoint is reachable.

        Raises:
            ApiError, EndpointTimeoutError: As for complete().
        """
        try:
            await litellm.acompletion(
                model=self.model,
                messages=[{"role": "user", "content": "ping"}],
                api_base=self.api_base,
                api_key=self.api_key,
                max_tokens=1,
                timeout=10,
            )
        except Exception as e:
            self._handle_llm_error(e)
