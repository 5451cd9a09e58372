"""
Provider layer.

This module provides the shared LLM contract and the agent-session backend
that implements it.
"""

from .base import LLM, BaseLLM
from .claude_code import (
    CLAUDE_AGENT_SDK_AVAILABLE,
    ClaudeCodeProvider,
    SessionOutput,
    extract_json,
    validate_json,
)
from .prompt import JSON_DIRECTIVE, CompiledPrompt, compile_prompt
from .registry import available_llms, create_llm, register_llm
from .types import (
    JSON_OBJECT,
    LLMResponse,
    Message,
    MessageInput,
    ResponseFormat,
    Role,
    ToolCall,
    image_reference,
    normalize_messages,
    wants_json,
)

__all__ = [
    # Protocols and base classes
    "LLM",
    "BaseLLM",
    # Provider implementations
    "ClaudeCodeProvider",
    "CLAUDE_AGENT_SDK_AVAILABLE",
    "SessionOutput",
    "extract_json",
    "validate_json",
    # Prompt compilation
    "JSON_DIRECTIVE",
    "CompiledPrompt",
    "compile_prompt",
    # Registry
    "create_llm",
    "register_llm",
    "available_llms",
    # Types
    "Role",
    "Message",
    "ToolCall",
    "LLMResponse",
    "MessageInput",
    "ResponseFormat",
    "JSON_OBJECT",
    "image_reference",
    "normalize_messages",
    "wants_json",
]
