from __future__ import annotations

import shlex
import subprocess
from typing import Any, Dict, Optional

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool

DEFAULT_ALLOWED_COMMANDS = ["npm", "node", "git", "ls", "cat", "echo", "python", "pytest"]
MAX_OUTPUT_CHARS = 30000


def truncate_output(text: str, max_length: int = MAX_OUTPUT_CHARS) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"\n\n[Output truncated - showing first {max_length} characters]"


class RunCommandTool(BuiltinTool):
    """Runs one allow-listed program directly, never through a shell."""

    name = "run_command"
    SCHEMA = {
        "name": "run_command",
        "description": (
            "Execute an allow-listed program (for example git, npm or pytest) in the "
            "workspace. Arguments are split like a shell would, but pipes, redirects "
            "and chaining are passed through literally."
        ),
        "properties": {
            "command": {"type": "string", "description": "Program and arguments, e.g. 'git log -n 5'."},
            "cwd": {"type": "string", "description": "Directory to run in. Default: workspace root."},
            "timeout_sec": {"type": "integer", "description": "Kill the program after this many seconds. Default: 60."},
        },
        "required": ["command"],
    }

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(workspace_root, policy)
        self.allowed = list(self.policy.get("allowed_commands", DEFAULT_ALLOWED_COMMANDS))

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        command: str = args["command"]
        timeout = int(args.get("timeout_sec", 60))

        try:
            argv = shlex.split(command)
        except ValueError as exc:
            return ToolResult.failure("INVALID_COMMAND", f"Could not parse command: {exc}")
        if not argv:
            return ToolResult.failure("INVALID_COMMAND", "Command is empty")

        program = argv[0]
        if "/" in program or "\\" in program:
            return ToolResult.failure(
                "COMMAND_NOT_ALLOWED",
                f"'{program}' must be a bare program name looked up on PATH, not a path",
            )
        if program not in self.allowed:
            return ToolResult.failure(
                "COMMAND_NOT_ALLOWED",
                f"'{program}' is not an allowed command (allowed: {', '.join(self.allowed)})",
            )

        workdir = self.guard.resolve(args.get("cwd"))
        if workdir is None:
            return ToolResult.failure("PATH_OUTSIDE_WORKSPACE", f"cwd '{args.get('cwd')}' is outside the workspace.")
        if not workdir.is_dir():
            return ToolResult.failure("CWD_NOT_FOUND", f"Working directory does not exist: {args.get('cwd')}")

        try:
            proc = subprocess.run(argv, capture_output=True, text=True, cwd=str(workdir), timeout=timeout)
        except subprocess.TimeoutExpired:
            return ToolResult.failure("TIMEOUT", f"'{command}' did not finish within {timeout} seconds")
        except OSError as exc:
            return ToolResult.failure("EXEC_ERROR", f"Could not start '{program}': {exc}")

        warnings = [] if proc.returncode == 0 else [f"Command exited with non-zero code {proc.returncode}"]
        return ToolResult.success(
            data={
                "command": command,
                "exit_code": proc.returncode,
                "stdout": truncate_output(proc.stdout),
                "stderr": truncate_output(proc.stderr),
                "success": proc.returncode == 0,
            },
            message=f"{program} exited with code {proc.returncode}",
            warnings=warnings,
        )
