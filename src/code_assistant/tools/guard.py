from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from code_assistant.core.tool_result import ToolResult

_log = logging.getLogger(__name__)

_TYPE_MAP = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "array": list,
    "object": dict,
}


class ToolGuard:
    """Policy and workspace checks run by every built-in tool before it acts."""

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]] = None):
        self.workspace_root = Path(workspace_root).resolve()
        self.policy = policy or {}

    def check(
        self,
        tool_name: str,
        args: Dict[str, Any],
        schema: Optional[Dict[str, Any]] = None,
    ) -> Optional[ToolResult]:
        """Return a failure ToolResult if the call is not allowed, else None."""
        if tool_name in self.policy.get("deny_tools", []):
            return self._deny(tool_name, "DENIED_BY_POLICY", f"Tool '{tool_name}' is denied by policy.")

        if schema is not None:
            error = self._validate_types(args, schema)
            if error:
                return self._deny(tool_name, "INVALID_ARGS", error)

        path_arg = args.get("path")
        if isinstance(path_arg, str) and path_arg:
            if self.resolve(path_arg) is None:
                return self._deny(
                    tool_name,
                    "PATH_OUTSIDE_WORKSPACE",
                    f"Path '{path_arg}' resolves outside the workspace.",
                )
        return None

    def resolve(self, raw_path: Optional[str]) -> Optional[Path]:
        """Resolve a path against the workspace. None if it escapes the workspace."""
        if not raw_path:
            return self.workspace_root
        path = Path(raw_path)
        resolved = path.resolve() if path.is_absolute() else (self.workspace_root / path).resolve()
        try:
            resolved.relative_to(self.workspace_root)
        except ValueError:
            return None
        return resolved

    def _deny(self, tool_name: str, code: str, message: str) -> ToolResult:
        _log.info("Blocked %s: %s", tool_name, message)
        return ToolResult.failure(code, message)

    @staticmethod
    def _validate_types(args: Dict[str, Any], schema: Dict[str, Any]) -> Optional[str]:
        properties = schema.get("properties", {})
        for key, value in args.items():
            expected_type = properties.get(key, {}).get("type")
            if expected_type not in _TYPE_MAP:
                continue
            # bool is an int subclass; do not accept it for numeric fields
            if expected_type in ("integer", "number") and isinstance(value, bool):
                return f"Field '{key}' expected type '{expected_type}', got bool."
            if not isinstance(value, _TYPE_MAP[expected_type]):
                return f"Field '{key}' expected type '{expected_type}', got {type(value).__name__}."
        return None
