"""
Error taxonomy for agent-llm.

This module provides a small hierarchical exception system with:
- Error codes for programmatic handling
- Retryable vs non-retryable classification
- Structured context for debugging
- A kind discriminant on provider errors so callers can tell a failed
  agent session apart from malformed agent output
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for agent-llm."""

    # Provider errors (1xxx)
    PROVIDER_ERROR = "ERR_1000"
    AGENT_SESSION = "ERR_1001"
    INVALID_JSON = "ERR_1002"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "ERR_2000"
    INVALID_MESSAGE = "ERR_2001"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"
    INVALID_CONFIG = "ERR_6002"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


class ProviderErrorKind(str, Enum):
    """Why a provider call failed."""

    SESSION_FAILURE = "session_failure"
    VALIDATION_FAILURE = "validation_failure"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    request_id: str | None = None
    provider: str | None = None
    model: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "provider": self.provider,
            "model": self.model,
            "operation": self.operation,
            **self.extra,
        }


class LLMClientError(Exception):
    """
    Base exception for all agent-llm errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        retryable: Whether the operation can be retried
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.request_id:
            parts.append(f"(request_id={self.context.request_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(LLMClientError):
    """
    The single failure surface of a provider call.

    Subclasses set ``kind``; code that only cares that the call failed can
    keep catching ``ProviderError``.
    """

    code = ErrorCode.PROVIDER_ERROR
    retryable = False
    kind: ProviderErrorKind = ProviderErrorKind.SESSION_FAILURE

    def __init__(
        self,
        message: str,
        *,
        kind: ProviderErrorKind | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["kind"] = self.kind.value
        return d


class AgentSessionError(ProviderError):
    """Submitting to or draining the agent session failed."""

    code = ErrorCode.AGENT_SESSION
    retryable = True
    kind = ProviderErrorKind.SESSION_FAILURE


class JSONValidationError(ProviderError):
    """JSON output was requested but the agent's text does not parse."""

    code = ErrorCode.INVALID_JSON
    retryable = False
    kind = ProviderErrorKind.VALIDATION_FAILURE

    def __init__(
        self,
        raw_content: str,
        *,
        message: str | None = None,
        **kwargs,
    ):
        super().__init__(message or f"Agent did not return valid JSON: {raw_content}", **kwargs)
        self.raw_content = raw_content


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(LLMClientError):
    """Base class for input validation errors."""

    code = ErrorCode.VALIDATION_ERROR
    retryable = False


class InvalidMessageError(ValidationError, TypeError):
    """Message input has an unsupported shape."""

    code = ErrorCode.INVALID_MESSAGE


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(LLMClientError):
    """Base class for configuration errors."""

    code = ErrorCode.CONFIG_ERROR
    retryable = False


class InvalidConfigError(ConfigError, ValueError):
    """Configuration is invalid."""

    code = ErrorCode.INVALID_CONFIG


def is_retryable(error: BaseException) -> bool:
    """
    Check if an error is retryable.

    Nothing in agent-llm retries; this is for callers layering their own policy.
    """
    if isinstance(error, LLMClientError):
        return error.retryable

    retryable_types = (
        asyncio.TimeoutError,
        ConnectionError,
        TimeoutError,
    )
    return isinstance(error, retryable_types)


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "LLMClientError",
    # Provider errors
    "ProviderErrorKind",
    "ProviderError",
    "AgentSessionError",
    "JSONValidationError",
    # Validation errors
    "ValidationError",
    "InvalidMessageError",
    # Config errors
    "ConfigError",
    "InvalidConfigError",
    # Utilities
    "is_retryable",
]
