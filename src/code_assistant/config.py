"""Configuration management - Pydantic model with YAML loading and CLI overrides."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

DEFAULT_CONFIG_DIR = Path.home() / ".code-assistant"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

DEFAULT_API_BASE = "https://api.groq.com/openai/v1"

_EXAMPLE_CONFIG = (
    "  model: groq/llama3-8b-8192\n"
    "  api_key: gsk-...\n\n"
    "Optional fields: api_base, temperature, max_tokens, context_window_limit,\n"
    "max_history_length, max_tool_rounds"
)


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class AgentConfig(BaseModel):
    """Agent configuration with validation."""

    model_config = ConfigDict(extra="forbid")

    model: str
    api_base: str = DEFAULT_API_BASE
    api_key: str | None = None

    # Sampling
    temperature: float = 0.1
    max_tokens: int = 4000

    # Context management. Tokens are estimated as serialized characters / chars_per_token.
    context_window_limit: int = 8192
    max_history_length: int = 50
    prune_threshold: float = 0.8
    prune_shrink_factor: int = 2
    chars_per_token: float = 4.0

    # Loop guards
    max_tool_rounds: int = 25
    request_timeout: float = 300.0
    tool_timeout: float = 60.0

    # Built-in tool policy: deny_tools, allowed_commands, max_file_size, max_edit_files
    tool_policy: dict[str, Any] = {}

    @field_validator("api_base")
    @classmethod
    def validate_api_base(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("prune_threshold")
    @classmethod
    def validate_prune_threshold(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError("Must be in (0, 1]")
        return v

    @field_validator("prune_shrink_factor", "max_history_length", "max_tool_rounds", "max_tokens")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    @field_validator("chars_per_token", "request_timeout", "tool_timeout")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Must be greater than 0")
        return v

    @model_validator(mode="after")
    def _check_retain_count(self) -> "AgentConfig":
        if self.max_history_length // self.prune_shrink_factor < 1:
            raise ValueError("max_history_length // prune_shrink_factor must be at least 1")
        return self

    @property
    def retain_count(self) -> int:
        """Number of conversation rounds kept after a prune."""
        return self.max_history_length // self.prune_shrink_factor

    def public_dict(self) -> dict:
        """Return the config as a dict with the API key removed."""
        return self.model_dump(exclude={"api_key"})

    def __repr__(self) -> str:
        shown = ("model", "api_base", "temperature", "max_tokens", "context_window_limit")
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in shown)
        masked = "***" if self.api_key else None
        return f"AgentConfig({fields}, api_key={masked!r})"

    __str__ = __repr__


def _format_validation_error(e: ValidationError) -> str:
    errors = []
    for err in e.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        errors.append(f"  - {field or 'config'}: {err['msg']}")
    return "\n".join(errors)


def load_config(config_path: Path | None = None) -> AgentConfig:
    """Load and validate config from YAML file.

    Args:
        config_path: Path to config file. Defaults to ~/.code-assistant/config.yaml.

    Returns:
        Validated AgentConfig instance.

    Raises:
        ConfigError: If file is missing, empty, or contains invalid config.
    """
    path = config_path or DEFAULT_CONFIG_FILE

    if not path.exists():
        raise ConfigError(
            f"Configuration file not found.\n\n"
            f"Expected location: {path}\n\n"
            f"Minimal configuration:\n{_EXAMPLE_CONFIG}"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}\n\n  {e}") from None

    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid configuration in {path}\n\n"
            f"  Config file is empty or not a valid YAML mapping.\n\n"
            f"Minimal configuration:\n{_EXAMPLE_CONFIG}"
        )

    try:
        return AgentConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}\n\n{_format_validation_error(e)}"
        ) from None


def apply_cli_overrides(
    config: AgentConfig,
    model: str | None = None,
    api_base: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> AgentConfig:
    """Apply CLI flag overrides to config. Returns a new AgentConfig instance.

    Override precedence: Defaults → YAML → CLI flags.
    """
    candidates = {"model": model, "api_base": api_base, "temperature": temperature, "max_tokens": max_tokens}
    overrides = {key: value for key, value in candidates.items() if value is not None}
    if not overrides:
        return config

    try:
        return AgentConfig.model_validate(config.model_dump() | overrides)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid CLI override:\n\n{_format_validation_error(e)}"
        ) from None
