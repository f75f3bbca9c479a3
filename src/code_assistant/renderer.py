"""Rich terminal output helpers for the CLI."""

import contextlib
import io
import json
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.rule import Rule
from rich.status import Status
from rich.table import Table
from rich.text import Text

from code_assistant.core.metrics import MetricsSnapshot
from code_assistant.core.observer import AgentObserver

_MAX_ARG_CHARS = 50
_MAX_RESULT_PREVIEW = 120


class Renderer:
    """Render markdown and styled status/error output in terminal."""

    def __init__(self, output_file: io.TextIOBase | None = None) -> None:
        self._output_file = output_file
        if output_file is not None:
            self.console = Console(file=output_file, force_terminal=False, highlight=False)
        else:
            self.console = Console()

    def render_markdown(self, text: str) -> None:
        """Render markdown content with Rich formatting."""
        self.console.print(Markdown(text))

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/red]", highlight=False)

    def print_info(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/dim]", highlight=False)

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]{escape(message)}[/green]", highlight=False)

    def status_spinner(self, message: str) -> "Status | contextlib.AbstractContextManager":
        """Return a spinner context manager, or a no-op one when output is redirected."""
        if self._output_file is not None or not self.console.is_terminal:
            return contextlib.nullcontext()
        return self.console.status(message)

    def render_separator(self) -> None:
        self.console.print(Rule(style="dim"))

    def render_config(self, config_items: dict) -> None:
        """Render configuration items one per line, left-aligned."""
        for key, value in config_items.items():
            self.console.print(Text.assemble((f"{key}: ", "dim"), (str(value), "#888888")), highlight=False)

    def render_status_line(self, model: str, token_count: int | None, session_id: str | None) -> None:
        """Render compact status line after each assistant response."""
        parts = [model]
        if token_count is not None:
            parts.append(f"{token_count:,} tokens")
        if session_id is not None:
            parts.append(session_id[:12] + "..." if len(session_id) > 12 else session_id)
        self.console.print(Text(" | ".join(parts), style="dim"))

    def render_tool_panel(self, tool_name: str, tool_args: dict) -> None:
        """Render a compact inline display for a tool call."""
        self.console.print(f"[bold cyan]◆[/bold cyan] [cyan]{escape(tool_name)}[/cyan]")
        for key, value in tool_args.items():
            value_str = str(value)
            if len(value_str) > _MAX_ARG_CHARS:
                value_str = value_str[:_MAX_ARG_CHARS - 3] + "..."
            self.console.print(f"  [dim]{escape(str(key))}[/dim]: {escape(value_str)}", highlight=False)

    def render_metrics(self, snapshot: MetricsSnapshot, tool_metrics: dict[str, dict[str, Any]]) -> None:
        table = Table(title="Performance Metrics", show_header=True, header_style="bold cyan")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Total requests", str(snapshot.total_requests))
        table.add_row("Total tokens", f"{snapshot.total_tokens:,}")
        table.add_row("Average response time", f"{snapshot.average_response_time:.0f} ms")
        table.add_row("Success rate", f"{snapshot.success_rate:.1f}%")
        self.console.print(table)

        used = {name: m for name, m in tool_metrics.items() if m["usage_count"]}
        if not used:
            return
        tools = Table(title="Tool Usage", show_header=True, header_style="bold cyan")
        tools.add_column("Tool", style="cyan")
        tools.add_column("Calls", justify="right")
        tools.add_column("Errors", justify="right")
        tools.add_column("Avg time", justify="right")
        for name, m in sorted(used.items()):
            tools.add_row(name, str(m["usage_count"]), str(m["error_count"]), f"{m['average_execution_time']:.0f} ms")
        self.console.print(tools)

    def render_tools(self, tools: list[dict[str, Any]]) -> None:
        table = Table(title="Registered Tools", show_header=True, header_style="bold cyan")
        table.add_column("Tool", style="cyan")
        table.add_column("Required")
        table.add_column("Description")
        for tool in tools:
            required = ", ".join(tool["input_schema"].get("required", []))
            table.add_row(tool["name"], required, tool["description"])
        self.console.print(table)


class RendererObserver(AgentObserver):
    """Shows tool activity and pruning while a turn runs."""

    def __init__(self, renderer: Renderer) -> None:
        self.renderer = renderer

    def on_tool_call(self, name: str, arguments: dict[str, Any]) -> None:
        self.renderer.render_tool_panel(name, arguments)

    def on_tool_executed(self, name: str, arguments: dict[str, Any], result: Any) -> None:
        message = result.get("message") if isinstance(result, dict) else None
        if not message:
            message = json.dumps(result, default=str)[:_MAX_RESULT_PREVIEW]
        self.renderer.print_success(f"  ✓ {message}")

    def on_tool_error(self, name: str, error: Exception) -> None:
        self.renderer.print_error(f"  error: {error}")

    def on_context_pruned(self, removed: int, kept: int) -> None:
        self.renderer.print_info(f"  context pruned: dropped {removed} old messages, kept {kept}")
