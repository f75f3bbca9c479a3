"""Code-Assistant CLI entry point."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import litellm
from prompt_toolkit import PromptSession

from code_assistant import __version__
from code_assistant.config import AgentConfig, ConfigError, apply_cli_overrides, load_config
from code_assistant.core.agent import Agent
from code_assistant.core.llm import LLMClient
from code_assistant.core.registry import ToolRegistry
from code_assistant.core.system_prompt import SYSTEM_PROMPT
from code_assistant.errors import AgentError, SessionFormatError
from code_assistant.renderer import Renderer, RendererObserver
from code_assistant.slash_commands import CommandContext, SlashCommandCompleter, execute_command, save_active_session
from code_assistant.state.session import SessionManager
from code_assistant.state.todo import TodoList
from code_assistant.tools import register_builtin_tools

litellm.suppress_debug_info = True

_log = logging.getLogger(__name__)

USER_PROMPT = "You   > "


def print_banner() -> None:
    click.echo(click.style(f"\n  code-assistant v{__version__}\n", fg="cyan", bold=True))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        logging.getLogger("LiteLLM").setLevel(logging.ERROR)


def build_agent(config: AgentConfig, workspace: Path, renderer: Renderer, todo_list: TodoList) -> Agent:
    """Create an agent with the built-in tools registered for the workspace."""
    registry = ToolRegistry()
    names = register_builtin_tools(registry, str(workspace), config.tool_policy, todo_list)
    _log.debug("Registered built-in tools: %s", ", ".join(names))
    return Agent(
        config,
        llm_client=LLMClient(config),
        registry=registry,
        observer=RendererObserver(renderer),
        system_prompt=f"{SYSTEM_PROMPT}\n\nWorkspace root: {workspace}",
    )


def _restore_session(ctx: CommandContext, resume: bool, session_id: str | None) -> bool:
    """Load the requested session into the agent. Returns False if it was requested but not found."""
    try:
        if resume:
            snapshot = ctx.session_manager.load_latest()
            if snapshot is None:
                ctx.renderer.print_warning("No previous sessions found. Starting a new session.")
                return True
        else:
            snapshot = ctx.session_manager.load(session_id)
            if snapshot is None:
                ctx.renderer.print_error(f"Session not found: {session_id}")
                return False
    except SessionFormatError as e:
        ctx.renderer.print_error(f"Cannot load session: {e}")
        return False

    ctx.agent.load_session(snapshot)
    ctx.renderer.print_info(f"Resuming session: {snapshot.title} ({len(snapshot.messages)} messages)")
    return True


async def run_repl(ctx: CommandContext) -> None:
    """Read user input until /exit or EOF, running each message as an agent turn."""
    renderer = ctx.renderer
    agent = ctx.agent
    session = PromptSession(completer=SlashCommandCompleter())

    while True:
        try:
            text = await session.prompt_async(USER_PROMPT)
        except KeyboardInterrupt:
            renderer.print_info("Use Ctrl+D or type /exit to quit.")
            continue
        except EOFError:
            break

        text = text.strip()
        if not text:
            continue

        should_continue = execute_command(text, ctx)
        if should_continue is False:
            break
        if should_continue is True:
            continue

        try:
            with renderer.status_spinner("Thinking..."):
                result = await agent.process_message(text)
        except AgentError as e:
            renderer.print_error(str(e))
            continue

        renderer.render_markdown(result.content)
        session_id = save_active_session(ctx)
        renderer.render_separator()
        renderer.render_status_line(agent.config.model, result.usage.get("total_tokens"), session_id)


@click.command()
@click.version_option(__version__, prog_name="code-assistant")
@click.option("--model", default=None, help="Override LLM model (e.g., groq/llama3-8b-8192)")
@click.option("--api-base", default=None, help="Override the chat completion endpoint base URL")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.yaml",
)
@click.option(
    "--workspace",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory the built-in tools may access",
)
@click.option("--resume", is_flag=True, help="Resume the most recent session")
@click.option("--session", "session_id", default=None, help="Resume a specific session by ID")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(
    model: str | None,
    api_base: str | None,
    config_path: Path | None,
    workspace: Path,
    resume: bool,
    session_id: str | None,
    verbose: bool,
) -> None:
    """Tool-calling coding assistant for OpenAI-compatible endpoints."""
    _configure_logging(verbose)
    print_banner()

    try:
        config = load_config(config_path)
        config = apply_cli_overrides(config, model=model, api_base=api_base)
    except ConfigError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    workspace = workspace.resolve()
    renderer = Renderer()
    renderer.render_config({"Model": config.model, "API": config.api_base, "Workspace": workspace})

    todo_list = TodoList()
    agent = build_agent(config, workspace, renderer, todo_list)
    ctx = CommandContext(agent=agent, session_manager=SessionManager(), renderer=renderer, todo_list=todo_list)

    if (resume or session_id) and not _restore_session(ctx, resume, session_id):
        sys.exit(1)

    async def _session() -> None:
        await agent.llm_client.verify_connection()
        renderer.print_info("Connected. Type /help for commands, /exit to quit.")
        await run_repl(ctx)

    try:
        asyncio.run(_session())
    except AgentError as e:
        click.echo(str(e), err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
