from __future__ import annotations

import re
import subprocess
from typing import Any, Dict, List

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import GitTool
from code_assistant.tools.run_command import truncate_output

_FILE_HEADER = re.compile(r"^diff --git a/.+ b/(.+)$")


def split_file_diffs(diff_text: str) -> List[Dict[str, Any]]:
    """Break unified diff text into one entry per file with added/removed line counts."""
    entries: List[Dict[str, Any]] = []
    for line in diff_text.splitlines():
        header = _FILE_HEADER.match(line)
        if header:
            entries.append({"path": header.group(1), "additions": 0, "deletions": 0})
        elif not entries or line.startswith(("+++", "---")):
            continue
        elif line.startswith("+"):
            entries[-1]["additions"] += 1
        elif line.startswith("-"):
            entries[-1]["deletions"] += 1
    return entries


class GitDiffTool(GitTool):
    name = "git_diff"
    SCHEMA = {
        "name": "git_diff",
        "description": (
            "Show changes in the workspace repository: unstaged changes by default, "
            "staged changes with staged=true, or the diff from base_ref to target_ref."
        ),
        "properties": {
            "staged": {"type": "boolean", "description": "Diff the index against HEAD. Default: false."},
            "paths": {"type": "array", "items": {"type": "string"}, "description": "Limit the diff to these paths."},
            "base_ref": {"type": "string", "description": "Ref to diff from, e.g. 'main'."},
            "target_ref": {"type": "string", "description": "Ref to diff to. Used with base_ref."},
        },
        "required": [],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        base_ref = args.get("base_ref")
        target_ref = args.get("target_ref")
        paths: List[str] = args.get("paths") or []

        if target_ref and not base_ref:
            return ToolResult.failure("INVALID_ARGS", "target_ref requires base_ref.")
        for ref in (base_ref, target_ref):
            if ref and ref.startswith("-"):
                return ToolResult.failure("INVALID_ARGS", f"Invalid ref: {ref}")
        if not all(isinstance(raw, str) for raw in paths):
            return ToolResult.failure("INVALID_ARGS", "Field 'paths' must be a list of strings.")
        for raw in paths:
            if self.guard.resolve(raw) is None:
                return self.outside_workspace(raw)

        diff_args = ["diff"]
        if base_ref:
            diff_args.append(f"{base_ref}...{target_ref}" if target_ref else base_ref)
        elif args.get("staged"):
            diff_args.append("--cached")
        if paths:
            diff_args += ["--", *paths]

        try:
            proc = self._git(*diff_args)
        except (OSError, subprocess.TimeoutExpired) as exc:
            return ToolResult.failure("GIT_UNAVAILABLE", f"Could not run git: {exc}")
        if proc.returncode != 0:
            return ToolResult.failure("GIT_ERROR", proc.stderr.strip())

        files = split_file_diffs(proc.stdout)
        return ToolResult.success(
            data={"diff": truncate_output(proc.stdout), "files": files},
            message=f"{len(files)} file(s) changed" if files else "No changes",
        )
