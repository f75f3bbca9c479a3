"""Code-Assistant - tool-calling coding assistant for OpenAI-compatible endpoints."""

from importlib.metadata import version

__version__ = version("code-assistant")

from code_assistant.config import AgentConfig, ConfigError, load_config
from code_assistant.core.agent import Agent, TurnResult
from code_assistant.core.conversation import ConversationManager, Message, Role, ToolCall
from code_assistant.core.llm import LLMClient
from code_assistant.core.metrics import MetricsSnapshot
from code_assistant.core.registry import ToolRegistry
from code_assistant.errors import AgentError
from code_assistant.state.session import SessionManager, SessionSnapshot
from code_assistant.state.todo import TodoItem, TodoList
