"""
Provider protocol and base class.

This module defines the request/response contract shared by every LLM
backend the memory application can be configured with, so callers never
need to know whether a response came from a plain model endpoint or from
an agent session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from .types import (
    LLMResponse,
    Message,
    MessageInput,
    ResponseFormat,
    normalize_messages,
)


@runtime_checkable
class LLM(Protocol):
    """
    Protocol defining the interface for LLM backends.
    """

    @property
    def model_name(self) -> str:
        """Get the model identifier string."""
        ...

    async def generate_response(
        self,
        messages: MessageInput,
        response_format: ResponseFormat = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> str | LLMResponse:
        """
        Generate a response for the given messages.

        Args:
            messages: Input messages (str, dict, Message, or list of these)
            response_format: Output format ("json_object" or {"type": "json_object"})
            tools: Tool definitions the backend may advertise

        Returns:
            Bare text, or an LLMResponse when there is more than text to report
        """
        ...

    async def generate_chat(self, messages: MessageInput) -> LLMResponse:
        """Generate a response, always in the structured form."""
        ...


class BaseLLM(LLM, ABC):
    """
    Abstract base class for backend implementations.

    Subclasses implement ``generate_response``; ``generate_chat`` is derived
    from it.
    """

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    @staticmethod
    def _normalize_messages(messages: MessageInput) -> list[Message]:
        """Normalize message input to list of Message objects."""
        return normalize_messages(messages)

    @abstractmethod
    async def generate_response(
        self,
        messages: MessageInput,
        response_format: ResponseFormat = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> str | LLMResponse:
        """Generate a response. Must be implemented by subclasses."""
        ...

    async def generate_chat(self, messages: MessageInput) -> LLMResponse:
        response = await self.generate_response(messages)
        if isinstance(response, str):
            return LLMResponse(content=response)
        return response

    async def close(self) -> None:
        """
        Clean up backend resources.

        Override in subclasses that need cleanup.
        """
        pass

    async def __aenter__(self) -> BaseLLM:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = [
    "LLM",
    "BaseLLM",
]
