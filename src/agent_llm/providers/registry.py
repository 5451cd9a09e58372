"""
Registry of LLM backends by configuration name.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..config import ClaudeCodeConfig
from ..errors import InvalidConfigError
from .base import BaseLLM
from .claude_code import ClaudeCodeProvider

_REGISTRY: dict[str, type[BaseLLM]] = {
    "claude_code": ClaudeCodeProvider,
}


def _key(name: str) -> str:
    return name.strip().lower().replace("-", "_")


def register_llm(name: str, cls: type[BaseLLM]) -> None:
    """Register a backend class under ``name`` ("claude-code" and "claude_code" are the same key)."""
    if not (isinstance(cls, type) and issubclass(cls, BaseLLM)):
        raise InvalidConfigError(f"{cls!r} is not a BaseLLM subclass")
    _REGISTRY[_key(name)] = cls


def available_llms() -> list[str]:
    return sorted(_REGISTRY)


def create_llm(
    name: str,
    config: ClaudeCodeConfig | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> BaseLLM:
    """
    Create a backend by registry name.

    Args:
        name: Registry key, e.g. "claude_code"
        config: Backend config object or mapping
        **kwargs: Passed through to the backend constructor
    """
    try:
        cls = _REGISTRY[_key(name)]
    except KeyError:
        raise InvalidConfigError(
            f"Unknown LLM provider: {name!r}. Available: {', '.join(available_llms())}"
        ) from None
    return cls(config, **kwargs)


__all__ = ["register_llm", "available_llms", "create_llm"]
