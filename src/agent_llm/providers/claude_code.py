"""
Claude Code agent provider implementation.

This module lets the memory application call a Claude Code agent session
as if it were a plain request/response LLM endpoint. Each call:

1. compiles the conversation into one prompt plus a system prompt,
2. runs a single-turn agent session through the Claude Agent SDK,
3. drains the session's message stream, collecting text blocks and
   tool-use blocks in emission order,
4. returns the text (validated as JSON when requested), or an
   LLMResponse when the agent emitted tool calls.

Tool calls are reported as metadata only; nothing here executes them or
feeds results back into the session.
"""

from __future__ import annotations

import dataclasses
import json
import re
from collections.abc import Mapping
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..config import ClaudeCodeConfig, get_settings
from ..errors import AgentSessionError, ErrorContext, JSONValidationError, ProviderError
from ..logging import (
    RequestLog,
    ResponseLog,
    StructuredLogger,
    configure_logging,
    get_logger,
    timed,
    truncate_for_log,
)
from .base import BaseLLM
from .prompt import compile_prompt
from .types import (
    LLMResponse,
    MessageInput,
    ResponseFormat,
    ToolCall,
    wants_json,
)

if TYPE_CHECKING:
    from ..config import Settings

try:
    from claude_agent_sdk import (
        AssistantMessage,
        ClaudeAgentOptions,
        TextBlock,
        ToolUseBlock,
        query,
    )

    CLAUDE_AGENT_SDK_AVAILABLE = True
except Exception:  # pragma: no cover - import guard
    AssistantMessage = None  # type: ignore[assignment, misc]
    ClaudeAgentOptions = None  # type: ignore[assignment, misc]
    TextBlock = None  # type: ignore[assignment, misc]
    ToolUseBlock = None  # type: ignore[assignment, misc]
    query = None  # type: ignore[assignment]
    CLAUDE_AGENT_SDK_AVAILABLE = False


# Fixed session settings: one turn, no project or user settings loaded.
MAX_TURNS = 1
INCLUDE_PARTIAL_MESSAGES = False
PERMISSION_MODE = "bypassPermissions"
SETTING_SOURCES: tuple[str, ...] = ()

# Greedy: first "{" to last "}". Nested prose braces can defeat it.
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> str:
    """Return the outermost brace-delimited span of ``text``, or ``text`` unchanged."""
    match = _JSON_OBJECT_PATTERN.search(text)
    return match.group(0) if match else text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def validate_json(text: str) -> None:
    """Raise ValueError unless ``text`` is strict JSON (no NaN or Infinity)."""
    json.loads(text, parse_constant=_reject_constant)


@dataclass
class SessionOutput:
    """Text and tool calls collected from one agent session."""

    text_parts: list[str] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    event_count: int = 0

    @property
    def content(self) -> str:
        return "".join(self.text_parts)

    def add_event(self, event: Any) -> None:
        """Fold one session event in. Only assistant messages contribute."""
        self.event_count += 1
        if not isinstance(event, AssistantMessage):
            return
        for block in event.content:
            if isinstance(block, TextBlock):
                self.text_parts.append(block.text)
            elif isinstance(block, ToolUseBlock):
                self.tool_calls.append(
                    ToolCall(
                        name=block.name,
                        arguments=json.dumps(block.input, separators=(",", ":"), ensure_ascii=False),
                        id=block.id,
                    )
                )


class ClaudeCodeProvider(BaseLLM):
    """
    LLM backend that answers through a Claude Code agent session.

    Example:
        ```python
        provider = ClaudeCodeProvider(model="claude-sonnet-4-5-20250929")
        facts = await provider.generate_response(
            [Message.system("Extract facts."), Message.user("I moved to Lisbon.")],
            response_format={"type": "json_object"},
        )
        ```

    Requires:
        - claude-agent-sdk package: `pip install claude-agent-sdk`
        - a working Claude Code CLI login on the host
    """

    provider_name = "claude_code"

    def __init__(
        self,
        config: ClaudeCodeConfig | Mapping[str, Any] | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        allowed_tools: list[str] | tuple[str, ...] | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            config: ClaudeCodeConfig, or a mapping accepted by ClaudeCodeConfig.from_dict
            model: Override the configured model identifier
            max_tokens: Override the (advisory) token limit
            allowed_tools: Override the tools the agent may use
            logger: Structured logger (defaults to the package logger)
        """
        if not CLAUDE_AGENT_SDK_AVAILABLE:
            raise ImportError(
                "claude-agent-sdk package is not installed. Install it with: pip install claude-agent-sdk"
            )

        if isinstance(config, Mapping):
            config = ClaudeCodeConfig.from_dict(config)
        config = config or ClaudeCodeConfig()

        overrides: dict[str, Any] = {}
        if model is not None:
            overrides["model"] = model
        if max_tokens is not None:
            overrides["max_tokens"] = max_tokens
        if allowed_tools is not None:
            overrides["allowed_tools"] = tuple(allowed_tools)
        if overrides:
            config = dataclasses.replace(config, **overrides)

        self.config = config
        self.logger = logger or get_logger()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ClaudeCodeProvider:
        """Build a provider, and its logger, from Settings (global settings by default)."""
        settings = settings or get_settings()
        logger = configure_logging(
            level=settings.logging.level,
            json_output=settings.logging.json_output,
            name=settings.logging.logger_name,
        )
        return cls(settings.claude_code, logger=logger)

    @property
    def model_name(self) -> str:
        return self.config.model

    @property
    def max_tokens(self) -> int:
        return self.config.max_tokens

    @property
    def allowed_tools(self) -> tuple[str, ...]:
        return self.config.allowed_tools

    def _build_options(self, system_prompt: str) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            model=self.config.model,
            system_prompt=system_prompt or None,
            allowed_tools=list(self.config.allowed_tools),
            max_turns=MAX_TURNS,
            include_partial_messages=INCLUDE_PARTIAL_MESSAGES,
            permission_mode=PERMISSION_MODE,
            setting_sources=list(SETTING_SOURCES),
        )

    async def generate_response(
        self,
        messages: MessageInput,
        response_format: ResponseFormat = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> str | LLMResponse:
        """
        Generate a response through a single-turn agent session.

        Args:
            messages: Conversation to answer
            response_format: "json_object" (or {"type": "json_object"}) to require bare JSON
            tools: Accepted for interface compatibility; the agent's own
                allowed tools are set by configuration

        Returns:
            The response text, or an LLMResponse if the agent used tools

        Raises:
            ProviderError: the session failed (AgentSessionError) or JSON
                output did not parse (JSONValidationError)
        """
        normalized = self._normalize_messages(messages)
        json_mode = wants_json(response_format)
        compiled = compile_prompt(normalized, json_mode)
        if tools:
            self.logger.debug("Ignoring caller tool definitions", tool_count=len(tools))
        return await self.run(compiled.prompt, compiled.system_prompt, wants_json=json_mode)

    async def run(
        self,
        prompt: str,
        system_prompt: str = "",
        *,
        wants_json: bool = False,
    ) -> str | LLMResponse:
        """Drive one agent session for an already compiled prompt and assemble the response."""
        with self.logger.request_context(
            provider=self.provider_name,
            model=self.model_name,
            operation="run",
        ) as request_id:
            self.logger.log_request(
                RequestLog(
                    request_id=request_id,
                    provider=self.provider_name,
                    model=self.model_name,
                    operation="run",
                    prompt_chars=len(prompt),
                    has_system_prompt=bool(system_prompt),
                    json_mode=wants_json,
                    allowed_tools=list(self.config.allowed_tools),
                )
            )
            context = ErrorContext(
                request_id=request_id,
                provider=self.provider_name,
                model=self.model_name,
                operation="run",
            )
            output = SessionOutput()

            with timed() as timer:
                try:
                    await self._drain_session(prompt, system_prompt, output)
                except Exception as exc:
                    error = AgentSessionError(f"Agent session failed: {exc}", context=context, cause=exc)
                    self._log_outcome(request_id, output, timer.elapsed_ms, error=error)
                    raise error from exc

                content = output.content
                if wants_json:
                    content = extract_json(content)
                    try:
                        validate_json(content)
                    except ValueError as exc:
                        error = JSONValidationError(content, context=context, cause=exc)
                        self._log_outcome(request_id, output, timer.elapsed_ms, error=error)
                        raise error from exc

            self._log_outcome(request_id, output, timer.elapsed_ms)
            self.logger.debug("Assembled agent output", preview=truncate_for_log(content))

            if output.tool_calls:
                return LLMResponse(content=content, tool_calls=list(output.tool_calls))
            return content

    async def _drain_session(self, prompt: str, system_prompt: str, output: SessionOutput) -> None:
        events = query(prompt=prompt.strip(), options=self._build_options(system_prompt))
        async with aclosing(events):
            async for event in events:
                output.add_event(event)

    def _log_outcome(
        self,
        request_id: str,
        output: SessionOutput,
        duration_ms: float,
        error: ProviderError | None = None,
    ) -> None:
        self.logger.log_response(
            ResponseLog(
                request_id=request_id,
                provider=self.provider_name,
                model=self.model_name,
                operation="run",
                success=error is None,
                error=error.message if error else None,
                error_kind=error.kind.value if error else None,
                duration_ms=duration_ms,
                event_count=output.event_count,
                content_chars=len(output.content),
                tool_call_count=len(output.tool_calls),
            )
        )


__all__ = [
    "CLAUDE_AGENT_SDK_AVAILABLE",
    "MAX_TURNS",
    "INCLUDE_PARTIAL_MESSAGES",
    "PERMISSION_MODE",
    "SETTING_SOURCES",
    "SessionOutput",
    "ClaudeCodeProvider",
    "extract_json",
    "validate_json",
]
