"""
Provider configuration classes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidConfigError

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_MAX_TOKENS = 4096

# Read-only context gathering: file reads, content/name search, and a few
# shell commands for listing, reading and git history.
DEFAULT_ALLOWED_TOOLS: tuple[str, ...] = (
    "Read",
    "Grep",
    "Glob",
    "Bash(ls:*)",
    "Bash(cat:*)",
    "Bash(git log:*)",
    "Bash(git diff:*)",
)


@dataclass(frozen=True)
class ClaudeCodeConfig:
    """
    Per-provider configuration for agent sessions.

    ``max_tokens`` is advisory: it is recorded and logged but the agent
    session options have no output cap to pass it to.
    """

    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    allowed_tools: tuple[str, ...] = field(default=DEFAULT_ALLOWED_TOOLS)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.model, str) or not self.model.strip():
            raise InvalidConfigError("model must be a non-empty string")
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise InvalidConfigError("max_tokens must be a positive integer")
        if isinstance(self.allowed_tools, str):
            raise InvalidConfigError("allowed_tools must be a sequence of tool names, not a string")
        tools = tuple(self.allowed_tools)
        if not all(isinstance(tool, str) and tool.strip() for tool in tools):
            raise InvalidConfigError("allowed_tools entries must be non-empty strings")
        # Frozen dataclass: normalize list input to a tuple
        object.__setattr__(self, "allowed_tools", tools)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClaudeCodeConfig:
        """
        Build a config from a mapping.

        Accepts flat keys (``model``, ``max_tokens``, ``allowed_tools``) as
        well as the memory application's provider config shape, where the
        token limit and tool list sit under ``model_properties`` (or
        ``modelProperties``) using snake_case or camelCase names.
        """
        if not data:
            return cls()

        properties: Mapping[str, Any] = data.get("model_properties") or data.get("modelProperties") or {}

        def pick(*keys: str) -> Any:
            for source in (data, properties):
                for key in keys:
                    if source.get(key) is not None:
                        return source[key]
            return None

        kwargs: dict[str, Any] = {}
        if model := pick("model"):
            kwargs["model"] = model
        if (max_tokens := pick("max_tokens", "maxTokens")) is not None:
            kwargs["max_tokens"] = max_tokens
        if (allowed_tools := pick("allowed_tools", "allowedTools")) is not None:
            kwargs["allowed_tools"] = _as_tool_tuple(allowed_tools)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "allowed_tools": list(self.allowed_tools),
        }


def _as_tool_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, Iterable):
        return tuple(value)
    raise InvalidConfigError(f"allowed_tools must be a list or comma-separated string, got {type(value).__name__}")


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_ALLOWED_TOOLS",
    "ClaudeCodeConfig",
]
