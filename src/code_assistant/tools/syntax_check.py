from __future__ import annotations

import ast
import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool

MAX_LINE_LENGTH = 120
MAX_FILES = 200

Issue = Dict[str, Any]

_MIXED_INDENT = re.compile(r"^(\t+ +| +\t)")


def _issue(line: int, column: int, message: str) -> Issue:
    return {"line": line, "column": column, "message": message}


def check_python(text: str) -> List[Issue]:
    try:
        ast.parse(text)
    except SyntaxError as exc:
        return [_issue(exc.lineno or 1, exc.offset or 1, exc.msg)]
    except ValueError as exc:
        # source containing null bytes
        return [_issue(1, 1, str(exc))]
    return []


def check_json(text: str) -> List[Issue]:
    try:
        json.loads(text)
    except json.JSONDecodeError as exc:
        return [_issue(exc.lineno, exc.colno, exc.msg)]
    return []


def check_yaml(text: str) -> List[Issue]:
    try:
        list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        if mark is None:
            return [_issue(1, 1, str(exc))]
        return [_issue(mark.line + 1, mark.column + 1, getattr(exc, "problem", None) or str(exc))]
    return []


CHECKERS: Dict[str, Callable[[str], List[Issue]]] = {
    ".py": check_python,
    ".pyi": check_python,
    ".json": check_json,
    ".yaml": check_yaml,
    ".yml": check_yaml,
}

LANGUAGES = {".py": "python", ".pyi": "python", ".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def style_warnings(text: str) -> List[Issue]:
    """Long lines, trailing whitespace and mixed tab/space indentation."""
    warnings = []
    for number, line in enumerate(text.splitlines(), 1):
        if len(line) > MAX_LINE_LENGTH:
            warnings.append(_issue(number, MAX_LINE_LENGTH + 1, f"Line too long ({len(line)} characters)"))
        if line != line.rstrip():
            warnings.append(_issue(number, len(line.rstrip()) + 1, "Trailing whitespace"))
        if _MIXED_INDENT.match(line):
            warnings.append(_issue(number, 1, "Mixed tabs and spaces"))
    return warnings


class SyntaxCheckTool(BuiltinTool):
    """Parse Python, JSON and YAML files and report syntax errors with positions."""

    name = "syntax_check"
    SCHEMA = {
        "name": "syntax_check",
        "description": (
            "Check Python, JSON and YAML files for syntax errors. Accepts a file or a "
            "directory (every supported file under it is checked). Optionally reports "
            "style warnings: long lines, trailing whitespace, mixed indentation."
        ),
        "properties": {
            "path": {"type": "string", "description": "File or directory to check."},
            "include_warnings": {"type": "boolean", "description": "Also report style warnings. Default: false."},
        },
        "required": ["path"],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        requested = args["path"]
        target = self.guard.resolve(requested)
        if target is None:
            return self.outside_workspace(requested)
        if not target.exists():
            return ToolResult.failure("PATH_NOT_FOUND", f"Path does not exist: {requested}")

        if target.is_file():
            if target.suffix.lower() not in CHECKERS:
                return ToolResult.failure(
                    "UNSUPPORTED_LANGUAGE",
                    f"No syntax checker for '{target.suffix or target.name}' "
                    f"(supported: {', '.join(sorted(CHECKERS))})",
                )
            files = [target]
        else:
            files = self._collect(target)

        include_warnings = bool(args.get("include_warnings", False))
        results = [self._check_file(path, include_warnings) for path in files[:MAX_FILES]]
        invalid = [r for r in results if not r["valid"]]

        notes = [f"Only the first {MAX_FILES} files were checked."] if len(files) > MAX_FILES else []
        return ToolResult.success(
            data={"valid": not invalid, "files": results, "files_checked": len(results), "invalid_count": len(invalid)},
            message=f"{len(invalid)} of {len(results)} file(s) have syntax errors",
            warnings=notes,
        )

    def _collect(self, root: Path) -> List[Path]:
        found = []
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in CHECKERS:
                continue
            if any(part.startswith(".") for part in path.relative_to(root).parts):
                continue
            resolved = self.guard.resolve(str(path))
            if resolved is not None:
                found.append(resolved)
        return found

    def _check_file(self, path: Path, include_warnings: bool) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "file": path.resolve().relative_to(self.guard.workspace_root).as_posix(),
            "language": LANGUAGES[path.suffix.lower()],
        }
        text: Optional[str] = None
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            errors = [_issue(1, 1, f"Could not read file: {exc}")]
        else:
            errors = CHECKERS[path.suffix.lower()](text)

        entry["valid"] = not errors
        entry["errors"] = errors
        if include_warnings and text is not None:
            entry["warnings"] = style_warnings(text)
        return entry
