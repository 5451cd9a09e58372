"""
agent-llm: run a Claude Code agent session behind a plain LLM interface.

Load credentials with ``load_env()`` before the first call if they live in
a ``.env`` file.
"""

from .config import ClaudeCodeConfig, LoggingConfig, Settings, configure, get_settings, load_env
from .errors import (
    AgentSessionError,
    JSONValidationError,
    LLMClientError,
    ProviderError,
    ProviderErrorKind,
)
from .logging import configure_logging, get_logger
from .providers import (
    LLM,
    BaseLLM,
    ClaudeCodeProvider,
    LLMResponse,
    Message,
    Role,
    ToolCall,
    compile_prompt,
    create_llm,
    register_llm,
)
from .sync import generate_chat_sync, generate_response_sync

__version__ = "0.1.0"

__all__ = [
    "LLM",
    "BaseLLM",
    "ClaudeCodeProvider",
    "create_llm",
    "register_llm",
    "compile_prompt",
    "Message",
    "Role",
    "ToolCall",
    "LLMResponse",
    "LLMClientError",
    "ProviderError",
    "ProviderErrorKind",
    "AgentSessionError",
    "JSONValidationError",
    "ClaudeCodeConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "configure",
    "load_env",
    "get_logger",
    "configure_logging",
    "generate_response_sync",
    "generate_chat_sync",
]
