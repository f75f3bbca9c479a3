from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool

DEFAULT_MAX_FILES = 50


class ReplaceInFilesTool(BuiltinTool):
    """Find/replace across every workspace file matching a glob."""

    name = "replace_in_files"
    SCHEMA = {
        "name": "replace_in_files",
        "description": (
            "Replace text in many files at once. Matches plain text by default or a "
            "regular expression with regex=true. Use dry_run=true to preview which "
            "files would change."
        ),
        "properties": {
            "find": {"type": "string", "description": "Text or regex to find."},
            "replace": {"type": "string", "description": "Replacement. Regex mode accepts \\1 group references."},
            "glob": {"type": "string", "description": "File name glob, e.g. '*.py'. Default: all files."},
            "path": {"type": "string", "description": "Directory to search. Default: workspace root."},
            "regex": {"type": "boolean", "description": "Treat find as a regular expression. Default: false."},
            "case_sensitive": {"type": "boolean", "description": "Default: true."},
            "whole_word": {"type": "boolean", "description": "Only match whole words. Default: false."},
            "dry_run": {"type": "boolean", "description": "Count matches without writing. Default: false."},
        },
        "required": ["find", "replace"],
    }

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(workspace_root, policy)
        self.max_files = int(self.policy.get("max_edit_files", DEFAULT_MAX_FILES))

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        find: str = args["find"]
        if not find:
            return ToolResult.failure("INVALID_ARGS", "find must not be empty.")
        root = self.guard.resolve(args.get("path"))
        if root is None:
            return self.outside_workspace(args.get("path"))
        if not root.is_dir():
            return ToolResult.failure("DIR_NOT_FOUND", f"Directory not found: {args.get('path')}")

        source = find if args.get("regex") else re.escape(find)
        if args.get("whole_word"):
            source = rf"\b(?:{source})\b"
        try:
            regex = re.compile(source, 0 if args.get("case_sensitive", True) else re.IGNORECASE)
        except re.error as exc:
            return ToolResult.failure("INVALID_REGEX", f"Invalid regex pattern: {exc}")
        replacement: str = args["replace"] if args.get("regex") else args["replace"].replace("\\", "\\\\")

        planned = []
        for path in self._candidates(root, args.get("glob") or "*"):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            try:
                updated, count = regex.subn(replacement, text)
            except re.error as exc:
                return ToolResult.failure("INVALID_REGEX", f"Invalid replacement: {exc}")
            if count:
                planned.append((path, updated, count))

        if len(planned) > self.max_files:
            return ToolResult.failure(
                "TOO_MANY_FILES",
                f"{len(planned)} files match; the limit is {self.max_files}. Narrow the glob or path.",
            )

        dry_run = bool(args.get("dry_run", False))
        changed: List[Dict[str, Any]] = []
        for path, updated, count in planned:
            if not dry_run:
                try:
                    path.write_text(updated, encoding="utf-8")
                except OSError as exc:
                    return ToolResult.failure("WRITE_ERROR", f"Could not write {path.name}: {exc}")
            changed.append({"file": path.relative_to(self.guard.workspace_root).as_posix(), "replacements": count})

        total = sum(entry["replacements"] for entry in changed)
        verb = "Would replace" if dry_run else "Replaced"
        return ToolResult.success(
            data={"files": changed, "total_replacements": total, "dry_run": dry_run},
            message=f"{verb} {total} occurrence(s) in {len(changed)} file(s)",
        )

    def _candidates(self, root: Path, file_glob: str) -> List[Path]:
        found = []
        for path in sorted(root.rglob(file_glob)):
            relative = path.relative_to(root).parts
            if not path.is_file() or any(part.startswith(".") for part in relative):
                continue
            resolved = self.guard.resolve(str(path))
            if resolved is not None:
                found.append(resolved)
        return found
