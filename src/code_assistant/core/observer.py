"""Observer interface for agent notifications.

Components call these hooks instead of emitting events; the default
implementation ignores everything so callers only override what they display.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from code_assistant.core.conversation import Message


class AgentObserver:
    """No-op base observer."""

    def on_history_updated(self, message: "Message") -> None:
        pass

    def on_history_cleared(self) -> None:
        pass

    def on_context_pruned(self, removed: int, kept: int) -> None:
        pass

    def on_tool_call(self, name: str, arguments: dict[str, Any]) -> None:
        pass

    def on_tool_executed(self, name: str, arguments: dict[str, Any], result: Any) -> None:
        pass

    def on_tool_error(self, name: str, error: Exception) -> None:
        pass
