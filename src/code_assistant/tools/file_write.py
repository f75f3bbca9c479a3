from __future__ import annotations

from typing import Any, Dict

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool


class FileWriteTool(BuiltinTool):
    name = "file_write"
    SCHEMA = {
        "name": "file_write",
        "description": (
            "Write text to a file in the workspace, creating missing parent "
            "directories. Replaces an existing file unless overwrite is false."
        ),
        "properties": {
            "path": {"type": "string", "description": "Destination path, relative to the workspace root or absolute."},
            "content": {"type": "string", "description": "Full text to store in the file."},
            "overwrite": {"type": "boolean", "description": "Replace the file if it exists. Default: true."},
        },
        "required": ["path", "content"],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        requested = args["path"]
        target = self.guard.resolve(requested)
        if target is None:
            return self.outside_workspace(requested)
        text: str = args["content"]

        if target.is_dir():
            return ToolResult.failure("IS_A_DIRECTORY", f"Path is a directory: {requested}")

        existed = target.exists()
        if existed and not args.get("overwrite", True):
            return ToolResult.failure("FILE_EXISTS", f"{requested} exists and overwrite is false")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            return ToolResult.failure("WRITE_ERROR", f"Could not write file: {exc}")

        written = len(text.encode("utf-8"))
        verb = "Updated" if existed else "Created"
        return ToolResult.success(
            data={"path": str(target), "bytes_written": written, "created": not existed},
            message=f"{verb} {target.name} ({written} bytes)",
        )
