"""Tool registry owned by an agent instance."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable

from code_assistant.errors import ToolNotFoundError, ToolTimeoutError, ToolValidationError

_log = logging.getLogger(__name__)

_EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}, "required": []}


class ToolKind(str, Enum):
    BUILTIN = "builtin"
    CUSTOM = "custom"


@dataclass
class ToolDefinition:
    """Definition of a tool available to the agent.

    ``handler`` takes the decoded input dict and returns a JSON-serializable
    value or raises. It may be a plain function or a coroutine function.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: Callable[[dict[str, Any]], Any]
    kind: ToolKind = ToolKind.CUSTOM

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))

    def to_openai(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description or f"Execute {self.name}",
                "parameters": self.input_schema,
            },
        }


@dataclass
class ToolUsage:
    """Per-tool execution counters. average_execution_time is in milliseconds."""

    usage_count: int = 0
    success_count: int = 0
    error_count: int = 0
    average_execution_time: float = 0.0

    def record(self, duration_ms: float, success: bool) -> None:
        self.usage_count += 1
        if success:
            self.success_count += 1
        else:
            self.error_count += 1
        n = self.usage_count
        self.average_execution_time = (self.average_execution_time * (n - 1) + duration_ms) / n


class ToolRegistry:
    """Mapping from tool name to definition. Re-registering a name overwrites it."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._usage: dict[str, ToolUsage] = {}

    def register(
        self,
        name: str,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        handler: Callable[[dict[str, Any]], Any] | None = None,
        kind: ToolKind = ToolKind.CUSTOM,
    ) -> ToolDefinition:
        if handler is None or not callable(handler):
            raise TypeError(f"Tool '{name}' must have a callable handler")
        definition = ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema or dict(_EMPTY_SCHEMA),
            handler=handler,
            kind=kind,
        )
        return self.register_tool(definition)

    def register_tool(self, definition: ToolDefinition) -> ToolDefinition:
        if definition.name in self._tools:
            _log.debug("Overwriting tool registration: %s", definition.name)
        self._tools[definition.name] = definition
        self._usage.setdefault(definition.name, ToolUsage())
        _log.debug("Tool registered: %s (%s)", definition.name, definition.kind.value)
        return definition

    def unregister(self, name: str) -> bool:
        self._usage.pop(name, None)
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list(self) -> list[dict[str, Any]]:
        return [
            {"name": t.name, "description": t.description, "input_schema": t.input_schema}
            for t in self._tools.values()
        ]

    def openai_schemas(self) -> list[dict[str, Any]]:
        return [t.to_openai() for t in self._tools.values()]

    def validate(self, name: str, arguments: dict[str, Any]) -> ToolDefinition:
        """Look up a tool and check its declared required fields.

        Raises:
            ToolNotFoundError: If the name is not registered.
            ToolValidationError: For the first missing required field.
        """
        definition = self._tools.get(name)
        if definition is None:
            raise ToolNotFoundError(name)
        for field_name in definition.required:
            if field_name not in arguments:
                raise ToolValidationError(field_name)
        return definition

    async def execute(self, name: str, arguments: dict[str, Any], timeout: float | None = None) -> Any:
        """Validate and run a tool, recording usage.

        Sync handlers run in a worker thread so they do not block the loop.

        Raises:
            ToolNotFoundError, ToolValidationError: Before the handler runs.
            ToolTimeoutError: If the handler exceeds ``timeout`` seconds.
            Exception: Whatever the handler raises.
        """
        definition = self.validate(name, arguments)
        usage = self._usage.setdefault(name, ToolUsage())

        start = time.perf_counter()
        task = asyncio.ensure_future(self._invoke(definition, arguments))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task not in done:
            task.cancel()
            usage.record((time.perf_counter() - start) * 1000, success=False)
            raise ToolTimeoutError(name, timeout or 0)

        # A TimeoutError raised by the handler itself propagates unchanged
        try:
            result = task.result()
        except Exception:
            usage.record((time.perf_counter() - start) * 1000, success=False)
            raise
        usage.record((time.perf_counter() - start) * 1000, success=True)
        return result

    @staticmethod
    async def _invoke(definition: ToolDefinition, arguments: dict[str, Any]) -> Any:
        handler = definition.handler
        if inspect.iscoroutinefunction(handler):
            return await handler(arguments)
        result = await asyncio.to_thread(handler, arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def tool_metrics(self) -> dict[str, dict[str, Any]]:
        return {name: asdict(usage) for name, usage in self._usage.items()}
