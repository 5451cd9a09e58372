"""
Configuration system for agent-llm.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading
- Sensible defaults with override capability
"""

from .base import LogFormat, LogLevel
from .logging import LoggingConfig
from .provider import (
    DEFAULT_ALLOWED_TOOLS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    ClaudeCodeConfig,
)
from .settings import Settings, configure, get_settings, load_env, reset_settings

__all__ = [
    # Types
    "LogLevel",
    "LogFormat",
    # Provider config
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_ALLOWED_TOOLS",
    "ClaudeCodeConfig",
    # Other configs
    "LoggingConfig",
    # Master config
    "Settings",
    # Global functions
    "get_settings",
    "configure",
    "reset_settings",
    "load_env",
]
