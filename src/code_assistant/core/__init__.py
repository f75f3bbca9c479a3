"""Core subpackage - agent loop, conversation state and LLM plumbing."""

from code_assistant.core.agent import Agent, TurnResult
from code_assistant.core.conversation import ConversationManager, Message, Role, ToolCall
from code_assistant.core.llm import ChatResponse, LLMClient
from code_assistant.core.metrics import Metrics, MetricsSnapshot
from code_assistant.core.observer import AgentObserver
from code_assistant.core.registry import ToolDefinition, ToolKind, ToolRegistry
from code_assistant.core.system_prompt import SYSTEM_PROMPT
from code_assistant.core.tool_result import ToolResult
