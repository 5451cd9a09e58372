"""
Structured Logging for agent-llm.

This module provides:
- Structured JSON (or colored text) logging with consistent fields
- Request/response records with request correlation
- Timing helpers for measuring an agent session
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Log Record Types
# =============================================================================


@dataclass(frozen=True)
class LogContext:
    """Request correlation fields attached to every record logged inside a request."""

    request_id: str
    provider: str
    model: str
    operation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RequestLog:
    """Log record for one agent session request."""

    request_id: str
    provider: str
    model: str
    operation: str

    timestamp: str = field(default_factory=lambda: _utcnow().isoformat())

    # Never the prompt itself
    prompt_chars: int = 0
    has_system_prompt: bool = False
    json_mode: bool = False
    allowed_tools: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ResponseLog:
    """Log record for one assembled response."""

    request_id: str
    provider: str
    model: str
    operation: str

    success: bool = True
    error: str | None = None
    error_kind: str | None = None

    timestamp: str = field(default_factory=lambda: _utcnow().isoformat())
    duration_ms: float | None = None

    event_count: int = 0
    content_chars: int = 0
    tool_call_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# Structured Logger
# =============================================================================


_request_context: contextvars.ContextVar[LogContext | None] = contextvars.ContextVar(
    "agent_llm_request_context", default=None
)


class StructuredLogger:
    """
    Logger with structured output and request correlation.

    Example:
        ```python
        logger = StructuredLogger("agent_llm")

        with logger.request_context(provider="claude_code", model="claude-sonnet-4-5", operation="run"):
            logger.log_request(RequestLog(...))
            # ... drain the agent session ...
            logger.log_response(ResponseLog(...))
        ```
    """

    def __init__(
        self,
        name: str = "agent_llm",
        level: str = "INFO",
        json_output: bool = True,
    ):
        self.name = name
        self.json_output = json_output

        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper()))

        # Install our handler once; on reconfiguration only its formatter changes.
        # Handlers added by the host application are left alone.
        handler = next((h for h in self._logger.handlers if getattr(h, "_agent_llm", False)), None)
        if handler is None and not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler._agent_llm = True  # type: ignore[attr-defined]
            self._logger.addHandler(handler)
        if handler is not None:
            handler.setFormatter(JSONFormatter() if json_output else TextFormatter())

    @property
    def context(self) -> LogContext | None:
        """The current task's request context, if inside ``request_context``."""
        return _request_context.get()

    @property
    def stdlib_logger(self) -> logging.Logger:
        return self._logger

    @contextmanager
    def request_context(self, provider: str, model: str, operation: str) -> Iterator[str]:
        """
        Context manager for a single request.

        The context lives in a ContextVar, so concurrent requests on
        different tasks keep their own request IDs.

        Yields:
            The request ID
        """
        request_id = generate_request_id()
        token = _request_context.set(
            LogContext(request_id=request_id, provider=provider, model=model, operation=operation)
        )
        try:
            yield request_id
        finally:
            _request_context.reset(token)

    def _log(
        self,
        level: int,
        message: str,
        event_type: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        record_data: dict[str, Any] = {"message": message}
        if (context := self.context) is not None:
            record_data.update(context.to_dict())

        if event_type:
            record_data["event_type"] = event_type

        if data:
            record_data.update(data)

        if self.json_output:
            self._logger.log(level, json.dumps(record_data, default=str))
        else:
            extras = " ".join(f"{k}={v}" for k, v in record_data.items() if k != "message")
            self._logger.log(level, f"{message} {extras}".rstrip())

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, data=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, data=kwargs)

    def log_request(self, request: RequestLog) -> None:
        """Log an agent session request."""
        self._log(
            logging.INFO,
            f"Agent request to {request.provider}/{request.model}",
            event_type="request",
            data=request.to_dict(),
        )

    def log_response(self, response: ResponseLog) -> None:
        """Log an assembled response; failures are logged at WARNING."""
        level = logging.INFO if response.success else logging.WARNING
        message = f"Agent response from {response.provider}/{response.model}"
        if response.duration_ms:
            message += f" ({response.duration_ms:.0f}ms)"
        self._log(level, message, event_type="response", data=response.to_dict())


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": _utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        # Parse JSON message if present
        try:
            message_data = json.loads(record.getMessage())
            if isinstance(message_data, dict):
                log_data.update(message_data)
            else:
                log_data["message"] = record.getMessage()
        except (json.JSONDecodeError, TypeError):
            log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = _utcnow().strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""

        return f"{timestamp} {color}{record.levelname:8}{reset} {record.getMessage()}"


# =============================================================================
# Utilities
# =============================================================================


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return f"req_{uuid.uuid4().hex[:12]}"


def truncate_for_log(text: str, max_length: int = 200) -> str:
    """Truncate text for logging."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... ({len(text)} chars total)"


@dataclass
class Timer:
    """Simple timer for measuring durations."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    def stop(self) -> float:
        """Stop the timer and return duration in milliseconds."""
        self.end_time = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        end = self.end_time or time.perf_counter()
        return (end - self.start_time) * 1000


@contextmanager
def timed() -> Iterator[Timer]:
    """Context manager for timing operations."""
    timer = Timer()
    try:
        yield timer
    finally:
        timer.stop()


# =============================================================================
# Global Logger
# =============================================================================

_default_logger: StructuredLogger | None = None


def get_logger(name: str = "agent_llm") -> StructuredLogger:
    """Get or create a structured logger."""
    global _default_logger
    if _default_logger is None or _default_logger.name != name:
        _default_logger = StructuredLogger(name)
    return _default_logger


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    name: str = "agent_llm",
) -> StructuredLogger:
    """Configure the default logger."""
    global _default_logger
    _default_logger = StructuredLogger(name=name, level=level, json_output=json_output)
    return _default_logger


__all__ = [
    "LogContext",
    "RequestLog",
    "ResponseLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "Timer",
    "timed",
    "generate_request_id",
    "truncate_for_log",
    "get_logger",
    "configure_logging",
]
