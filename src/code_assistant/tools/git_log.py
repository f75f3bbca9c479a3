from __future__ import annotations

import subprocess
from typing import Any, Dict, List

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import GitTool

# Unit and record separators keep subjects containing spaces or tabs intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%h", "%an", "%aI", "%s"]) + _RECORD_SEP


def parse_log(output: str) -> List[Dict[str, str]]:
    commits = []
    for record in output.split(_RECORD_SEP):
        fields = record.strip("\n").split(_FIELD_SEP)
        if len(fields) != 5:
            continue
        full, short, author, date, subject = fields
        commits.append({"hash": full, "short_hash": short, "author": author, "date": date, "subject": subject})
    return commits


class GitLogTool(GitTool):
    name = "git_log"
    SCHEMA = {
        "name": "git_log",
        "description": "List recent commits (hash, author, date, subject), newest first.",
        "properties": {
            "max_count": {"type": "integer", "description": "Number of commits to return. Default: 10."},
            "path": {"type": "string", "description": "Only commits touching this path."},
        },
        "required": [],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        max_count = int(args.get("max_count", 10))
        if max_count < 1:
            return ToolResult.failure("INVALID_ARGS", "max_count must be at least 1.")

        log_args = ["log", f"--max-count={max_count}", f"--format={_LOG_FORMAT}"]
        if args.get("path"):
            log_args += ["--", args["path"]]

        try:
            proc = self._git(*log_args)
        except (OSError, subprocess.TimeoutExpired) as exc:
            return ToolResult.failure("GIT_UNAVAILABLE", f"Could not run git: {exc}")
        if proc.returncode != 0:
            return ToolResult.failure("GIT_ERROR", proc.stderr.strip())

        commits = parse_log(proc.stdout)
        return ToolResult.success(data={"commits": commits}, message=f"{len(commits)} commit(s)")
