"""
Settings master configuration and global helpers.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from dotenv import find_dotenv, load_dotenv

from ..errors import InvalidConfigError
from .logging import LoggingConfig
from .provider import ClaudeCodeConfig
from .schema import CONFIG_SCHEMA


@dataclass
class Settings:
    """
    Master configuration for agent-llm.

    This aggregates all configuration sections into a single object
    that can be loaded from environment variables, files, or constructed
    programmatically.
    """

    claude_code: ClaudeCodeConfig = field(default_factory=ClaudeCodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "AGENT_LLM_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            AGENT_LLM_MODEL=claude-sonnet-4-5-20250929
            AGENT_LLM_MAX_TOKENS=8192
            AGENT_LLM_ALLOWED_TOOLS=Read,Grep,Glob
            AGENT_LLM_LOG_LEVEL=DEBUG
            AGENT_LLM_LOG_FORMAT=json
        """
        settings = cls()

        provider: dict[str, Any] = {}
        if model := os.getenv(f"{prefix}MODEL"):
            provider["model"] = model
        if max_tokens := os.getenv(f"{prefix}MAX_TOKENS"):
            try:
                provider["max_tokens"] = int(max_tokens)
            except ValueError as exc:
                raise InvalidConfigError(f"{prefix}MAX_TOKENS must be an integer, got {max_tokens!r}") from exc
        if allowed_tools := os.getenv(f"{prefix}ALLOWED_TOOLS"):
            provider["allowed_tools"] = allowed_tools
        if provider:
            settings.claude_code = ClaudeCodeConfig.from_dict(provider)

        log_overrides: dict[str, Any] = {}
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            log_overrides["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            log_overrides["format"] = log_format.lower()
        if log_overrides:
            settings.logging = dataclasses.replace(settings.logging, **log_overrides)

        return settings

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            try:
                import tomllib
            except ImportError:
                import tomli as tomllib
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise InvalidConfigError(f"Unsupported config file format: {suffix}")

        return cls.from_dict(data)

    @classmethod
    def default(cls) -> Settings:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary.

        The dictionary is validated against CONFIG_SCHEMA first. Session
        invariants (turn limit, permission mode, settings sources) are not
        configuration, so keys for them are rejected.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise InvalidConfigError(f"Configuration validation failed: {e.message}") from e

        settings = cls()

        if "claude_code" in data:
            settings.claude_code = ClaudeCodeConfig.from_dict(data["claude_code"])

        if "logging" in data:
            settings.logging = LoggingConfig(**data["logging"])

        return settings

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "claude_code": self.claude_code.to_dict(),
            "logging": dataclasses.asdict(self.logging),
        }


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it from the environment if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Settings | None = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override specific sections (``claude_code=...``, ``logging=...``)

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if not hasattr(_global_settings, key):
            raise InvalidConfigError(f"Unknown settings section: {key}")
        setattr(_global_settings, key, value)

    return _global_settings


def reset_settings() -> None:
    """Drop the global settings so the next get_settings() reloads them."""
    global _global_settings
    _global_settings = None


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "get_settings", "configure", "reset_settings", "load_env"]
