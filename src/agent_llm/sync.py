"""Thin sync wrappers for the async-first provider API.

The memory application's Python side calls its LLM backends synchronously.
These wrappers run one call with asyncio.run() and refuse to run inside an
active event loop, where the caller should await the async method instead.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .providers.base import LLM
    from .providers.types import LLMResponse, MessageInput, ResponseFormat


def _ensure_no_running_loop(name: str, alternative: str) -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    raise RuntimeError(
        f"{name}() cannot be called inside an async context. Use 'await {alternative}' instead."
    )


def generate_response_sync(
    llm: LLM,
    messages: MessageInput,
    response_format: ResponseFormat = None,
    tools: list[dict[str, Any]] | None = None,
) -> str | LLMResponse:
    """Sync wrapper for LLM.generate_response.

    Raises:
        RuntimeError: If called inside an existing async event loop.
    """
    _ensure_no_running_loop("generate_response_sync", "llm.generate_response(...)")
    return asyncio.run(llm.generate_response(messages, response_format=response_format, tools=tools))


def generate_chat_sync(llm: LLM, messages: MessageInput) -> LLMResponse:
    """Sync wrapper for LLM.generate_chat.

    Raises:
        RuntimeError: If called inside an existing async event loop.
    """
    _ensure_no_running_loop("generate_chat_sync", "llm.generate_chat(...)")
    return asyncio.run(llm.generate_chat(messages))


__all__ = ["generate_response_sync", "generate_chat_sync"]
