from __future__ import annotations

from typing import Any, Dict, Optional

from code_assistant.core.tool_result import ToolResult
from code_assistant.state.todo import TaskPriority, TaskStatus, TodoList
from code_assistant.tools.base import BuiltinTool


class _TodoTool(BuiltinTool):
    """Tool bound to the task list shared with the /todo command."""

    def __init__(self, workspace_root: str, policy: Optional[Dict[str, Any]], todo_list: TodoList) -> None:
        super().__init__(workspace_root, policy)
        self.todos = todo_list

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "todos": [item.to_dict() for item in self.todos.items()],
            "progress": self.todos.progress(),
        }


class TodoWriteTool(_TodoTool):
    name = "todo_write"
    SCHEMA = {
        "name": "todo_write",
        "description": (
            "Plan multi-step work as a task list. 'todos' adds tasks; 'updates' "
            "moves existing tasks between statuses; 'clear' starts a fresh list."
        ),
        "properties": {
            "todos": {
                "type": "array",
                "description": "Tasks to add.",
                "items": {
                    "type": "object",
                    "properties": {
                        "description": {"type": "string"},
                        "priority": {"type": "string", "enum": [p.value for p in TaskPriority]},
                    },
                    "required": ["description"],
                },
            },
            "updates": {
                "type": "array",
                "description": "Status changes, by task id.",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "status": {"type": "string", "enum": [s.value for s in TaskStatus]},
                    },
                    "required": ["id", "status"],
                },
            },
            "clear": {"type": "boolean", "description": "Drop every existing task first."},
        },
        "required": [],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        try:
            additions = [
                (entry["description"], TaskPriority(entry.get("priority", "medium")))
                for entry in args.get("todos", [])
            ]
            changes = [(entry["id"], TaskStatus(entry["status"])) for entry in args.get("updates", [])]
        except (KeyError, TypeError, ValueError) as exc:
            return ToolResult.failure("INVALID_ARGS", f"Invalid todo entry: {exc}")

        if args.get("clear"):
            self.todos.clear()

        added = [self.todos.add(description, priority).id for description, priority in additions]
        missing = [task_id for task_id, status in changes if self.todos.update(task_id, status=status) is None]
        if missing:
            return ToolResult.failure("TASK_NOT_FOUND", f"Unknown task id(s): {', '.join(missing)}")

        return ToolResult.success(
            data={"added": added, **self._snapshot()},
            message=f"{len(added)} added, {len(changes)} updated",
        )


class TodoReadTool(_TodoTool):
    name = "todo_read"
    SCHEMA = {
        "name": "todo_read",
        "description": "Show the task list with per-status counts and overall progress.",
        "properties": {},
        "required": [],
    }

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        return ToolResult.success(
            data={**self._snapshot(), "summary": self.todos.summary()},
            message=self.todos.format(),
        )
