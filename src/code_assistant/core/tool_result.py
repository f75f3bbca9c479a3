"""Result envelope returned by built-in tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from code_assistant.errors import ToolExecutionError


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one built-in tool run.

    A result carrying an ``error_code`` is a failure. ``unwrap()`` converts it
    into what the registry expects from a handler: the payload dict, or a
    raised ToolExecutionError.
    """

    data: Dict[str, Any] = field(default_factory=dict)
    message: str = ""
    warnings: List[str] = field(default_factory=list)
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None

    @classmethod
    def success(
        cls,
        data: Optional[Dict[str, Any]] = None,
        message: str = "",
        warnings: Optional[List[str]] = None,
    ) -> "ToolResult":
        return cls(data=dict(data or {}), message=message, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error_code: str, message: str) -> "ToolResult":
        return cls(message=message, error_code=error_code)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-serializable value handed back to the model."""
        payload = dict(self.data)
        if self.message:
            payload["message"] = self.message
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload

    def unwrap(self) -> Dict[str, Any]:
        if not self.ok:
            raise ToolExecutionError(self.message, error_code=self.error_code)
        return self.to_payload()
