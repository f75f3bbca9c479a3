from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from code_assistant.core.tool_result import ToolResult
from code_assistant.tools.base import BuiltinTool


def apply_edits(text: str, edits: List[Dict[str, Any]]) -> Tuple[str, int, Optional[str]]:
    """Apply exact-string replacements in order.

    Returns (new_text, replacements, error). Without replace_all an old_str
    must occur exactly once; on any error the original text is untouched.
    """
    replacements = 0
    for number, edit in enumerate(edits, 1):
        old, new = edit.get("old_str"), edit.get("new_str")
        if not isinstance(old, str) or not isinstance(new, str) or not old:
            return text, 0, f"Edit {number}: old_str and new_str must be strings and old_str non-empty."
        count = text.count(old)
        if count == 0:
            return text, 0, f"Edit {number}: old_str not found."
        if count > 1 and not edit.get("replace_all"):
            return text, 0, f"Edit {number}: old_str matches {count} times; make it unique or set replace_all."
        text = text.replace(old, new) if edit.get("replace_all") else text.replace(old, new, 1)
        replacements += count if edit.get("replace_all") else 1
    return text, replacements, None


class FileEditTool(BuiltinTool):
    """Exact find/replace inside one file. All edits apply or none do."""

    name = "file_edit"
    SCHEMA = {
        "name": "file_edit",
        "description": (
            "Edit an existing file by replacing exact text. Give old_str/new_str for one "
            "replacement or an edits list for several; they apply in order and the file is "
            "only written if every edit matches. Read the file first."
        ),
        "properties": {
            "path": {"type": "string", "description": "File to edit."},
            "old_str": {"type": "string", "description": "Exact text to replace. Must match once unless replace_all."},
            "new_str": {"type": "string", "description": "Replacement text."},
            "replace_all": {"type": "boolean", "description": "Replace every occurrence. Default: false."},
            "edits": {
                "type": "array",
                "items": {"type": "object"},
                "description": "List of {old_str, new_str, replace_all} applied in order.",
            },
            "dry_run": {"type": "boolean", "description": "Report the result without writing. Default: false."},
        },
        "required": ["path"],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        requested = args["path"]
        target = self.guard.resolve(requested)
        if target is None:
            return self.outside_workspace(requested)
        if not target.is_file():
            return ToolResult.failure("FILE_NOT_FOUND", f"File not found: {requested}")

        edits = args.get("edits")
        if edits is None:
            edits = [{k: args.get(k) for k in ("old_str", "new_str", "replace_all")}]
        if not edits or not all(isinstance(edit, dict) for edit in edits):
            return ToolResult.failure("INVALID_ARGS", "edits must be a non-empty list of objects.")

        try:
            original = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return ToolResult.failure("READ_ERROR", f"Could not read file: {exc}")

        updated, replacements, error = apply_edits(original, edits)
        if error:
            return ToolResult.failure("EDIT_NOT_APPLIED", error)

        dry_run = bool(args.get("dry_run", False))
        if not dry_run:
            try:
                target.write_text(updated, encoding="utf-8")
            except OSError as exc:
                return ToolResult.failure("WRITE_ERROR", f"Could not write file: {exc}")

        line_delta = updated.count("\n") - original.count("\n")
        verb = "Would replace" if dry_run else "Replaced"
        return ToolResult.success(
            data={
                "path": str(target),
                "replacements": replacements,
                "line_delta": line_delta,
                "dry_run": dry_run,
            },
            message=f"{verb} {replacements} occurrence(s) in {target.name}",
        )
