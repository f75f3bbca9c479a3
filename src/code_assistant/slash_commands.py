"""Slash commands available at the REPL prompt."""

from dataclasses import dataclass
from typing import Callable

from prompt_toolkit.completion import Completer, Completion
from rich.table import Table

from code_assistant.core.agent import Agent
from code_assistant.errors import SessionFormatError
from code_assistant.renderer import Renderer
from code_assistant.state.session import SessionManager
from code_assistant.state.todo import TodoList


@dataclass
class CommandContext:
    """Objects a slash command may act on."""

    agent: Agent
    session_manager: SessionManager
    renderer: Renderer
    todo_list: TodoList


# A handler returns False to end the REPL, True to keep reading input.
Handler = Callable[[str, CommandContext], bool]


@dataclass(frozen=True)
class SlashCommand:
    name: str
    handler: Handler
    help_text: str
    arg_required: bool = False

    @property
    def usage(self) -> str:
        return f"/{self.name} <arg>" if self.arg_required else f"/{self.name}"


COMMANDS: dict[str, SlashCommand] = {}


def slash_command(name: str, help_text: str, arg_required: bool = False) -> Callable[[Handler], Handler]:
    """Register the decorated handler under /name. /help lists commands in registration order."""

    def decorator(handler: Handler) -> Handler:
        COMMANDS[name] = SlashCommand(name, handler, help_text, arg_required)
        return handler

    return decorator


def _table(title: str, *columns: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    return table


@slash_command("help", "Show help message")
def cmd_help(args: str, ctx: CommandContext) -> bool:
    table = _table("Available Commands", "Command", "Description")
    for cmd in COMMANDS.values():
        table.add_row(cmd.usage, cmd.help_text)
    ctx.renderer.console.print(table)
    return True


@slash_command("clear", "Clear conversation history")
def cmd_clear(args: str, ctx: CommandContext) -> bool:
    ctx.agent.clear_history()
    ctx.renderer.print_success("Conversation cleared.")
    return True


def save_active_session(ctx: CommandContext) -> str:
    """Snapshot the agent into its active session (or a new one) and write it to disk."""
    active = ctx.agent.active_session
    session_id = active.id if active is not None else ctx.session_manager.generate_session_id()
    ctx.session_manager.save(ctx.agent.save_session(session_id))
    return session_id


@slash_command("save", "Save the current session")
def cmd_save(args: str, ctx: CommandContext) -> bool:
    if len(ctx.agent.conversation) == 0:
        ctx.renderer.print_info("Nothing to save yet.")
    else:
        ctx.renderer.print_success(f"Session saved: {save_active_session(ctx)}")
    return True


@slash_command("sessions", "List saved sessions")
def cmd_sessions(args: str, ctx: CommandContext) -> bool:
    sessions = ctx.session_manager.list()
    if not sessions:
        ctx.renderer.print_info("No saved sessions.")
        return True

    table = _table("Saved Sessions", "#", "ID", "Title", "Date", "Messages", "Model")
    for number, meta in enumerate(sessions, 1):
        table.add_row(
            str(number),
            meta["id"][:8],
            meta.get("title", "Untitled"),
            meta.get("updated_at", "Unknown")[:10],
            str(meta.get("message_count", 0)),
            meta.get("model", "Unknown"),
        )
    ctx.renderer.console.print(table)
    return True


def _resolve_session_id(arg: str, sessions: list[dict]) -> str:
    """Accept a list number, a full id or a unique id prefix."""
    if arg.isdigit() and 1 <= int(arg) <= len(sessions):
        return sessions[int(arg) - 1]["id"]
    prefixed = [meta["id"] for meta in sessions if meta["id"].startswith(arg)]
    return prefixed[0] if len(prefixed) == 1 else arg


@slash_command("load", "Load a saved session by id or list number", arg_required=True)
def cmd_load(args: str, ctx: CommandContext) -> bool:
    wanted = args.strip()
    try:
        snapshot = ctx.session_manager.load(_resolve_session_id(wanted, ctx.session_manager.list()))
    except SessionFormatError as e:
        ctx.renderer.print_error(f"Cannot load session: {e}")
        return True

    if snapshot is None:
        ctx.renderer.print_error(f"Session not found: {wanted}")
        return True

    ctx.agent.load_session(snapshot)
    ctx.renderer.print_success(f"Loaded session: {snapshot.title} ({len(snapshot.messages)} messages)")
    return True


@slash_command("metrics", "Show performance metrics")
def cmd_metrics(args: str, ctx: CommandContext) -> bool:
    ctx.renderer.render_metrics(ctx.agent.get_metrics(), ctx.agent.registry.tool_metrics())
    return True


@slash_command("tools", "List registered tools")
def cmd_tools(args: str, ctx: CommandContext) -> bool:
    tools = ctx.agent.registry.list()
    if tools:
        ctx.renderer.render_tools(tools)
    else:
        ctx.renderer.print_info("No tools registered.")
    return True


@slash_command("todo", "Show the task list")
def cmd_todo(args: str, ctx: CommandContext) -> bool:
    if len(ctx.todo_list) == 0:
        ctx.renderer.print_info("No tasks.")
    else:
        ctx.renderer.console.print(ctx.todo_list.format(), highlight=False, markup=False)
    return True


@slash_command("exit", "Exit the session")
def cmd_exit(args: str, ctx: CommandContext) -> bool:
    ctx.renderer.print_info("Goodbye!")
    return False


class SlashCommandCompleter(Completer):
    """prompt_toolkit completer offering command names after a leading '/'."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return
        typed = text[1:]
        for cmd in COMMANDS.values():
            if cmd.name.startswith(typed):
                yield Completion(cmd.name, start_position=-len(typed), display_meta=cmd.help_text)


def is_slash_command(text: str) -> bool:
    return text.lstrip().startswith("/")


def parse_command(text: str) -> tuple[str, str]:
    """Split "/name args" into (name, args). Returns ("", "") for anything else."""
    text = text.strip()
    if not text.startswith("/"):
        return "", ""
    name, _, args = text[1:].partition(" ")
    return name.lower(), args.strip()


def execute_command(text: str, ctx: CommandContext) -> bool | None:
    """Run a slash command.

    Returns:
        None if the text is not a slash command, otherwise the handler's
        continue flag (False ends the session).
    """
    if not is_slash_command(text):
        return None

    name, args = parse_command(text)
    cmd = COMMANDS.get(name)
    if cmd is None:
        ctx.renderer.print_error(f"Unknown command: /{name}. Type /help for available commands.")
        return True
    if cmd.arg_required and not args:
        ctx.renderer.print_error(f"Command /{name} requires an argument.")
        return True
    return cmd.handler(args, ctx)
