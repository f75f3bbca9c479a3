"""Base classes shared by the built-in tools."""

from __future__ import annotations

import subprocess
from typing import Any, Dict, Optional

from code_assistant.core.registry import ToolDefinition, ToolKind
from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.guard import ToolGuard


def input_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a tool SCHEMA into the JSON schema sent as function parameters."""
    return {
        "type": "object",
        "properties": schema.get("properties", {}),
        "required": list(schema.get("required", [])),
    }


class BuiltinTool:
    """A workspace-bound tool.

    Subclasses set ``name`` and ``SCHEMA`` and implement ``execute``. ``run``
    applies the guard first, so ``execute`` only sees allowed calls with
    well-typed arguments and in-workspace paths.
    """

    name: str = ""
    SCHEMA: Dict[str, Any] = {}

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]] = None) -> None:
        self.policy = policy or {}
        self.guard = ToolGuard(workspace_root=workspace_root, policy=self.policy)

    @property
    def description(self) -> str:
        return self.SCHEMA.get("description", "")

    def schema(self) -> Dict[str, Any]:
        return self.SCHEMA

    def run(self, args: Dict[str, Any]) -> ToolResult:
        blocked = self.guard.check(self.name, args, schema=self.SCHEMA)
        if blocked is not None:
            return blocked
        return self.execute(args)

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError

    def definition(self) -> ToolDefinition:
        """Wrap this tool for the registry; failures surface as ToolExecutionError."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=input_schema(self.SCHEMA),
            handler=lambda args: self.run(args).unwrap(),
            kind=ToolKind.BUILTIN,
        )

    @staticmethod
    def outside_workspace(requested: Any) -> ToolResult:
        return ToolResult.failure("PATH_OUTSIDE_WORKSPACE", f"Path '{requested}' resolves outside the workspace.")


class GitTool(BuiltinTool):
    """A built-in tool that shells out to git in the workspace root."""

    git_timeout = 15

    def _git(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=str(self.guard.workspace_root),
            timeout=self.git_timeout,
        )
