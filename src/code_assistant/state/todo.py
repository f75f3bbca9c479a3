"""Todo list for tracking the progress of multi-step tasks."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


STATUS_ICONS = {
    TaskStatus.PENDING: "○",
    TaskStatus.IN_PROGRESS: "◐",
    TaskStatus.COMPLETED: "●",
    TaskStatus.BLOCKED: "✕",
}

_ID_PREFIX = "task-"


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class TodoItem:
    id: str
    description: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: str = field(default_factory=_now)
    completed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = dict(vars(self))
        data["status"] = self.status.value
        data["priority"] = self.priority.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TodoItem":
        return cls(
            id=data["id"],
            description=data["description"],
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            priority=TaskPriority(data.get("priority", TaskPriority.MEDIUM.value)),
            created_at=data.get("created_at") or _now(),
            completed_at=data.get("completed_at"),
        )


class TodoList:
    """Ordered tasks keyed by id. New ids continue after the highest task-N seen."""

    def __init__(self, items: list[TodoItem] | None = None):
        self._items: dict[str, TodoItem] = {item.id: item for item in items or []}
        self._next_id = 1 + max(
            (int(task_id[len(_ID_PREFIX):]) for task_id in self._items
             if task_id.startswith(_ID_PREFIX) and task_id[len(_ID_PREFIX):].isdigit()),
            default=0,
        )

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> list[TodoItem]:
        return list(self._items.values())

    def get(self, task_id: str) -> TodoItem | None:
        return self._items.get(task_id)

    def add(self, description: str, priority: TaskPriority = TaskPriority.MEDIUM) -> TodoItem:
        item = TodoItem(id=f"{_ID_PREFIX}{self._next_id}", description=description, priority=priority)
        self._next_id += 1
        self._items[item.id] = item
        return item

    def update(
        self,
        task_id: str,
        status: TaskStatus | None = None,
        description: str | None = None,
        priority: TaskPriority | None = None,
    ) -> TodoItem | None:
        """Change fields of an existing task. Returns None if the id is unknown."""
        item = self._items.get(task_id)
        if item is None:
            return None
        if description is not None:
            item.description = description
        if priority is not None:
            item.priority = priority
        if status is not None:
            item.status = status
            item.completed_at = _now() if status is TaskStatus.COMPLETED else None
        return item

    def complete(self, task_id: str) -> bool:
        return self.update(task_id, status=TaskStatus.COMPLETED) is not None

    def remove(self, task_id: str) -> bool:
        return self._items.pop(task_id, None) is not None

    def get_pending(self) -> list[TodoItem]:
        """Tasks not yet finished or blocked."""
        return [i for i in self._items.values() if i.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)]

    def clear(self) -> None:
        self._items.clear()
        self._next_id = 1

    def progress(self) -> float:
        """Percentage of completed tasks (0 for an empty list)."""
        if not self._items:
            return 0.0
        return self.summary()[TaskStatus.COMPLETED.value] / len(self._items) * 100

    def summary(self) -> dict[str, int]:
        counts = dict.fromkeys((status.value for status in TaskStatus), 0)
        for item in self._items.values():
            counts[item.status.value] += 1
        return counts

    def format(self) -> str:
        if not self._items:
            return "No tasks."
        rows = [
            f"{STATUS_ICONS[item.status]} [{item.id}] {item.description} ({item.priority.value})"
            for item in self._items.values()
        ]
        rows.append(f"Progress: {self.progress():.0f}%")
        return "\n".join(rows)

    def to_dict(self) -> dict[str, Any]:
        return {"items": [item.to_dict() for item in self._items.values()]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TodoList":
        return cls([TodoItem.from_dict(entry) for entry in data.get("items", [])])
