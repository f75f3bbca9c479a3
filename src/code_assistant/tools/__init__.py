"""
code_assistant.tools
~~~~~~~~~~~~~~~~~~~~
Built-in tools. Each tool subclasses ``BuiltinTool``: it declares ``name``
and ``SCHEMA`` and returns a ``ToolResult`` from ``run(args)``.
``build_tools`` turns them into registry definitions so the agent sees them
like any custom tool.

Quick registration example::

    from code_assistant.core.registry import ToolRegistry
    from code_assistant.tools import register_builtin_tools

    registry = ToolRegistry()
    register_builtin_tools(registry, workspace_root="/workspace")
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from code_assistant.core.registry import ToolDefinition, ToolRegistry
from code_assistant.state.todo import TodoList
from code_assistant.tools.base import BuiltinTool, GitTool, input_schema
from code_assistant.tools.file_edit import FileEditTool
from code_assistant.tools.file_list import FileListTool
from code_assistant.tools.file_read import FileReadTool
from code_assistant.tools.file_write import FileWriteTool
from code_assistant.tools.git_commit import GitCommitTool
from code_assistant.tools.git_diff import GitDiffTool
from code_assistant.tools.git_log import GitLogTool
from code_assistant.tools.git_status import GitStatusTool
from code_assistant.tools.grep import GrepTool
from code_assistant.tools.replace_in_files import ReplaceInFilesTool
from code_assistant.tools.run_command import RunCommandTool
from code_assistant.tools.syntax_check import SyntaxCheckTool
from code_assistant.tools.todo import TodoReadTool, TodoWriteTool

__all__ = [
    "BuiltinTool", "GitTool", "FileReadTool", "FileWriteTool", "FileEditTool", "FileListTool",
    "GrepTool", "ReplaceInFilesTool", "SyntaxCheckTool", "GitStatusTool", "GitDiffTool",
    "GitLogTool", "GitCommitTool", "RunCommandTool", "TodoWriteTool", "TodoReadTool",
    "build_tools", "register_builtin_tools", "input_schema",
]


def build_tools(
    workspace_root: str,
    policy: Optional[Dict[str, Any]] = None,
    todo_list: Optional[TodoList] = None,
) -> List[ToolDefinition]:
    todos = todo_list if todo_list is not None else TodoList()
    tools: List[BuiltinTool] = [
        FileReadTool(workspace_root, policy),
        FileWriteTool(workspace_root, policy),
        FileEditTool(workspace_root, policy),
        FileListTool(workspace_root, policy),
        GrepTool(workspace_root, policy),
        ReplaceInFilesTool(workspace_root, policy),
        SyntaxCheckTool(workspace_root, policy),
        GitStatusTool(workspace_root, policy),
        GitDiffTool(workspace_root, policy),
        GitLogTool(workspace_root, policy),
        GitCommitTool(workspace_root, policy),
        RunCommandTool(workspace_root, policy),
        TodoWriteTool(workspace_root, policy, todos),
        TodoReadTool(workspace_root, policy, todos),
    ]
    return [tool.definition() for tool in tools]


def register_builtin_tools(
    registry: ToolRegistry,
    workspace_root: str,
    policy: Optional[Dict[str, Any]] = None,
    todo_list: Optional[TodoList] = None,
) -> List[str]:
    """Register every built-in tool not denied by policy. Returns the registered names."""
    denied = set((policy or {}).get("deny_tools", []))
    names = []
    for definition in build_tools(workspace_root, policy, todo_list):
        if definition.name in denied:
            continue
        registry.register_tool(definition)
        names.append(definition.name)
    return names
