from __future__ import annotations

from typing import Any, Dict, Optional

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class FileReadTool(BuiltinTool):
    name = "file_read"
    SCHEMA = {
        "name": "file_read",
        "description": (
            "Read a text file from the workspace. Read code before changing it. "
            "Use offset and limit to page through long files."
        ),
        "properties": {
            "path": {"type": "string", "description": "File path, relative to the workspace root or absolute."},
            "offset": {"type": "integer", "description": "First line to return, counting from 0. Default: 0."},
            "limit": {"type": "integer", "description": "Number of lines to return. Omit for the rest of the file."},
        },
        "required": ["path"],
    }

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(workspace_root, policy)
        self.max_file_size = int(self.policy.get("max_file_size", DEFAULT_MAX_FILE_SIZE))

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        requested = args["path"]
        for key in ("offset", "limit"):
            if args.get(key) is not None and args[key] < 0:
                return ToolResult.failure("INVALID_ARGS", f"Field '{key}' must not be negative.")
        target = self.guard.resolve(requested)
        if target is None:
            return self.outside_workspace(requested)

        if not target.exists():
            return ToolResult.failure("FILE_NOT_FOUND", f"File not found: {requested}")
        if not target.is_file():
            return ToolResult.failure("NOT_A_FILE", f"Path is not a file: {requested}")

        size = target.stat().st_size
        if size > self.max_file_size:
            return ToolResult.failure(
                "FILE_TOO_LARGE",
                f"File {requested} is {size} bytes; the limit is {self.max_file_size}",
            )

        try:
            text = target.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            return ToolResult.failure("READ_ERROR", f"Could not read file: {exc}")

        all_lines = text.splitlines(keepends=True)
        start = int(args.get("offset", 0))
        count = args.get("limit")
        window = all_lines[start:] if count is None else all_lines[start:start + count]

        return ToolResult.success(
            data={
                "path": str(target),
                "content": "".join(window),
                "total_lines": len(all_lines),
                "returned_lines": len(window),
                "offset": start,
                "size": size,
            },
            message=f"Read {len(window)} lines from {target.name}",
        )
