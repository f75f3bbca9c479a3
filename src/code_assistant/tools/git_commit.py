from __future__ import annotations

import subprocess
from typing import Any, Dict, List

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import GitTool


class GitCommitTool(GitTool):
    """Stage paths and commit. Refuses to run unless confirmed=true."""

    name = "git_commit"
    SCHEMA = {
        "name": "git_commit",
        "description": (
            "Create a git commit. Pass confirmed=true to proceed. Files in paths are "
            "staged first; otherwise only already-staged changes are committed."
        ),
        "properties": {
            "message": {"type": "string", "description": "Commit message."},
            "paths": {"type": "array", "items": {"type": "string"}, "description": "Files to stage before committing."},
            "confirmed": {"type": "boolean", "description": "Must be true to create the commit."},
        },
        "required": ["message"],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        if not args.get("confirmed"):
            return ToolResult.failure("CONFIRMATION_REQUIRED", "Set confirmed=true to create the commit.")
        message: str = args["message"].strip()
        if not message:
            return ToolResult.failure("INVALID_ARGS", "Commit message must not be empty.")
        paths: List[str] = args.get("paths") or []
        if not all(isinstance(raw, str) for raw in paths):
            return ToolResult.failure("INVALID_ARGS", "Field 'paths' must be a list of strings.")
        for raw in paths:
            if self.guard.resolve(raw) is None:
                return self.outside_workspace(raw)

        try:
            if paths:
                added = self._git("add", "--", *paths)
                if added.returncode != 0:
                    return ToolResult.failure("GIT_ADD_FAILED", added.stderr.strip())

            staged = self._git("diff", "--cached", "--name-only")
            staged_files = staged.stdout.split("\n") if staged.returncode == 0 else []
            staged_files = [name for name in staged_files if name]
            if not staged_files:
                return ToolResult.failure("NOTHING_TO_COMMIT", "No staged changes to commit.")

            committed = self._git("commit", "-m", message)
            if committed.returncode != 0:
                return ToolResult.failure("COMMIT_FAILED", committed.stderr.strip() or committed.stdout.strip())

            head = self._git("rev-parse", "--short", "HEAD")
        except (OSError, subprocess.TimeoutExpired) as exc:
            return ToolResult.failure("GIT_UNAVAILABLE", f"Could not run git: {exc}")

        commit = head.stdout.strip() if head.returncode == 0 else None
        return ToolResult.success(
            data={"commit": commit, "files": staged_files, "message": message},
            message=f"Committed {len(staged_files)} file(s) as {commit}",
        )
