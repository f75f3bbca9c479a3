from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool


class FileListTool(BuiltinTool):
    name = "file_list"
    SCHEMA = {
        "name": "file_list",
        "description": (
            "Show the workspace layout as a nested tree of directories and files. "
            "Directories are listed before files."
        ),
        "properties": {
            "path": {"type": "string", "description": "Directory to start from. Default: workspace root."},
            "depth": {"type": "integer", "description": "How many directory levels to descend. Default: 2."},
            "include_hidden": {"type": "boolean", "description": "Show dot-files and dot-directories. Default: false."},
            "extensions": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Keep only files with these suffixes, e.g. ['.py', '.md'].",
            },
        },
        "required": [],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        requested = args.get("path")
        root = self.guard.resolve(requested)
        if root is None:
            return self.outside_workspace(requested)
        if not root.exists():
            return ToolResult.failure("DIR_NOT_FOUND", f"Directory not found: {requested}")
        if not root.is_dir():
            return ToolResult.failure("NOT_A_DIR", f"Path is not a directory: {requested}")

        max_depth = int(args.get("depth", 2))
        show_hidden = bool(args.get("include_hidden", False))
        suffixes = args.get("extensions") or []
        workspace = self.guard.workspace_root

        def walk(directory: Path, levels_left: int) -> Dict[str, Any]:
            node: Dict[str, Any] = {
                "name": directory.name or str(directory),
                "type": "dir",
                "path": str(directory.relative_to(workspace)),
            }
            if levels_left <= 0:
                return node
            try:
                entries = sorted(directory.iterdir(), key=lambda p: (p.is_file(), p.name.lower()))
            except PermissionError:
                return node

            children: List[Dict[str, Any]] = []
            for entry in entries:
                if entry.name.startswith(".") and not show_hidden:
                    continue
                if entry.is_dir():
                    children.append(walk(entry, levels_left - 1))
                elif entry.is_file() and (not suffixes or entry.suffix in suffixes):
                    children.append({
                        "name": entry.name,
                        "type": "file",
                        "path": str(entry.relative_to(workspace)),
                        "size": entry.stat().st_size,
                    })
            node["children"] = children
            return node

        return ToolResult.success(
            data={"tree": walk(root, max_depth)},
            message=f"Listed '{root.name}' up to depth {max_depth}",
        )
