from __future__ import annotations

import json
import re
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool

RG_TIMEOUT = 30

# (absolute path, 1-based line number, line text without newline)
Hit = Tuple[Path, int, str]


class GrepTool(BuiltinTool):
    """Regex search over workspace files.

    ripgrep is used when it is on PATH; otherwise files are scanned with
    Python's ``re``. Both backends yield the same hit shape.
    """

    name = "grep"
    SCHEMA = {
        "name": "grep",
        "description": (
            "Search file contents with a regular expression. Returns each "
            "matching line with its file path and line number."
        ),
        "properties": {
            "pattern": {"type": "string", "description": "Regular expression to look for."},
            "path": {"type": "string", "description": "File or directory to search. Default: workspace root."},
            "glob": {"type": "string", "description": "Only search files whose name matches this glob, e.g. '*.py'."},
            "case_sensitive": {"type": "boolean", "description": "Match case exactly. Default: true."},
            "max_results": {"type": "integer", "description": "Stop after this many matching lines. Default: 200."},
        },
        "required": ["pattern"],
    }

    def __init__(
        self,
        workspace_root: str,
        policy: Optional[Dict[str, Any]] = None,
        use_ripgrep: Optional[bool] = None,
    ) -> None:
        super().__init__(workspace_root, policy)
        self.use_ripgrep = shutil.which("rg") is not None if use_ripgrep is None else use_ripgrep

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        pattern: str = args["pattern"]
        ignore_case = not args.get("case_sensitive", True)
        limit = int(args.get("max_results", 200))
        file_glob: Optional[str] = args.get("glob")

        root = self.guard.resolve(args.get("path"))
        if root is None:
            return self.outside_workspace(args.get("path"))
        if not root.exists():
            return ToolResult.failure("PATH_NOT_FOUND", f"Search path does not exist: {args.get('path')}")

        try:
            regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        except re.error as exc:
            return ToolResult.failure("INVALID_REGEX", f"Invalid regex pattern: {exc}")

        if self.use_ripgrep:
            backend = "ripgrep"
            try:
                hits = self._ripgrep(pattern, root, ignore_case, file_glob)
            except subprocess.TimeoutExpired:
                return ToolResult.failure("TIMEOUT", f"grep timed out after {RG_TIMEOUT} seconds")
            except OSError as exc:
                return ToolResult.failure("RG_ERROR", str(exc))
        else:
            backend = "python_re"
            hits = self._scan(regex, root, file_glob)

        matches: List[Dict[str, Any]] = []
        truncated = False
        for path, line_number, line in hits:
            if len(matches) >= limit:
                truncated = True
                break
            matches.append({"file": self._relative(path), "line_number": line_number, "line": line})

        files = sorted({m["file"] for m in matches})
        return ToolResult.success(
            data={
                "pattern": pattern,
                "matches": matches,
                "match_count": len(matches),
                "files_matched": files,
                "truncated": truncated,
                "parser_used": backend,
            },
            message=f"Found {len(matches)} match(es) across {len(files)} file(s)",
            warnings=[f"Results truncated at {limit}."] if truncated else [],
        )

    def _relative(self, path: Path) -> str:
        return path.resolve().relative_to(self.guard.workspace_root).as_posix()

    def _ripgrep(self, pattern: str, root: Path, ignore_case: bool, file_glob: Optional[str]) -> List[Hit]:
        cmd = ["rg", "--json"]
        if ignore_case:
            cmd.append("--ignore-case")
        if file_glob:
            cmd += ["--glob", file_glob]
        cmd += ["--", pattern, str(root)]

        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=RG_TIMEOUT)

        hits: List[Hit] = []
        for raw in proc.stdout.splitlines():
            try:
                event = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if event.get("type") != "match":
                continue
            data = event["data"]
            path = Path(data["path"]["text"])
            if not path.is_absolute():
                path = root / path
            hits.append((path, data["line_number"], data["lines"]["text"].rstrip("\n")))
        return hits

    @staticmethod
    def _scan(regex: "re.Pattern[str]", root: Path, file_glob: Optional[str]) -> Iterator[Hit]:
        if root.is_file():
            candidates = [root]
        else:
            candidates = sorted(p for p in root.rglob(file_glob or "*") if p.is_file())

        for path in candidates:
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            for number, line in enumerate(text.splitlines(), start=1):
                if regex.search(line):
                    yield path, number, line
