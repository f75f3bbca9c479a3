"""Error kinds raised by the agent core."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for all agent errors."""


class InvalidInputError(AgentError):
    """Raised when a user turn is not a non-empty string."""


class ApiError(AgentError):
    """Raised when the chat completion endpoint returns a non-success status."""

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        label = f"status {status_code}" if status_code is not None else "no status"
        super().__init__(f"API Error ({label}): {message}")


class EndpointTimeoutError(AgentError):
    """Raised when the chat completion endpoint does not answer in time."""


class RoundLimitExceeded(AgentError):
    """Raised when a single turn requests more tool rounds than allowed."""

    def __init__(self, max_rounds: int) -> None:
        self.max_rounds = max_rounds
        super().__init__(f"Model requested more than {max_rounds} tool rounds in one turn")


class ToolError(AgentError):
    """Base class for failures captured as tool results."""


class ToolNotFoundError(ToolError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class ToolValidationError(ToolError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Required field '{field}' missing")


class ToolExecutionError(ToolError):
    """Raised by tool handlers to report a failure, optionally with an error code."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        self.error_code = error_code
        super().__init__(message)


class ToolTimeoutError(ToolError):
    def __init__(self, name: str, timeout: float) -> None:
        self.name = name
        self.timeout = timeout
        super().__init__(f"Tool '{name}' timed out after {timeout:g} seconds")


class SessionFormatError(AgentError):
    """Raised when a stored session cannot be decoded."""


class ToolArgumentsError(ToolError):
    """Raised when model-supplied tool arguments are not a JSON object."""
