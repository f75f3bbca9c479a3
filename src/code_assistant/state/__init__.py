"""State subpackage - session persistence and task tracking."""

from code_assistant.state.session import SessionManager, SessionSnapshot
from code_assistant.state.todo import TaskPriority, TaskStatus, TodoItem, TodoList
