from __future__ import annotations

import subprocess
from typing import Any, Dict, List, Optional, Tuple

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import GitTool


def parse_porcelain_v2(output: str) -> Dict[str, List[str]]:
    """Split `git status --porcelain=v2` output into staged, unstaged, untracked and conflicted paths."""
    files: Dict[str, List[str]] = {"staged": [], "unstaged": [], "untracked": [], "conflicted": []}

    for line in output.splitlines():
        kind = line[:2]
        if kind == "? ":
            files["untracked"].append(line[2:])
            continue
        if kind == "u ":
            # unmerged entries carry 10 fields before the path
            files["conflicted"].append(line.split(" ", 10)[-1])
            continue
        if kind not in ("1 ", "2 "):
            continue
        # ordinary entries have 8 fields before the path, renames have 9 and a "\t<orig>" suffix
        fields = line.split(" ", 8 if kind == "1 " else 9)
        index_state, worktree_state = fields[1][0], fields[1][1]
        path = fields[-1].split("\t", 1)[0]
        if index_state != ".":
            files["staged"].append(path)
        if worktree_state != ".":
            files["unstaged"].append(path)

    return files


class GitStatusTool(GitTool):
    name = "git_status"
    SCHEMA = {
        "name": "git_status",
        "description": (
            "Report the git state of the workspace: current branch, upstream and "
            "ahead/behind counts, plus staged, unstaged, untracked and conflicted files."
        ),
        "properties": {},
        "required": [],
    }

    def _upstream(self) -> Optional[str]:
        proc = self._git("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}")
        if proc.returncode != 0:
            return None
        return proc.stdout.strip() or None

    def _ahead_behind(self, upstream: str) -> Tuple[int, int]:
        proc = self._git("rev-list", "--left-right", "--count", f"{upstream}...HEAD")
        counts = proc.stdout.split()
        if proc.returncode != 0 or len(counts) != 2:
            return 0, 0
        behind, ahead = counts
        return int(ahead), int(behind)

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        try:
            head = self._git("rev-parse", "--abbrev-ref", "HEAD")
        except (OSError, subprocess.TimeoutExpired) as exc:
            return ToolResult.failure("GIT_UNAVAILABLE", f"Could not run git: {exc}")
        if head.returncode != 0:
            return ToolResult.failure("NOT_A_REPO", f"Not a git repository: {head.stderr.strip()}")
        branch = head.stdout.strip()

        upstream = self._upstream()
        ahead, behind = self._ahead_behind(upstream) if upstream else (0, 0)

        status = self._git("status", "--porcelain=v2")
        if status.returncode != 0:
            return ToolResult.failure("GIT_ERROR", status.stderr.strip())
        files = parse_porcelain_v2(status.stdout)

        summary = ", ".join(f"{len(paths)} {label}" for label, paths in files.items())
        return ToolResult.success(
            data={"branch": branch, "upstream": upstream, "ahead": ahead, "behind": behind, **files},
            message=f"On branch '{branch}': {summary}",
        )
