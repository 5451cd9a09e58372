"""
Prompt compilation for agent sessions.

An agent session takes one prompt string and one system prompt, not a list
of chat messages. ``compile_prompt`` flattens the conversation into a
``User:`` / ``Assistant:`` transcript and lifts the first system message
out as the system prompt.

Only user and assistant turns are rendered. Messages with any other role
(tool results, extra system messages) are left out of the transcript; a
warning is logged for each non-system one so dropped content shows up in
the logs.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from ..logging import get_logger
from .types import Message, Role, role_name

JSON_DIRECTIVE = (
    "IMPORTANT: You MUST respond with valid JSON only. Do not include any markdown "
    "formatting, code blocks, or explanatory text. Your entire response should be "
    "parseable JSON."
)

TRANSCRIPT_LABELS = {
    Role.USER: "User",
    Role.ASSISTANT: "Assistant",
}


class CompiledPrompt(NamedTuple):
    prompt: str
    system_prompt: str


def compile_prompt(messages: Sequence[Message], wants_json: bool = False) -> CompiledPrompt:
    """
    Compile role-tagged messages into a transcript and a system prompt.

    Args:
        messages: Conversation in order
        wants_json: Append JSON_DIRECTIVE to the system prompt

    Returns:
        CompiledPrompt(prompt, system_prompt); the prompt is stripped
    """
    system_message = next((m for m in messages if m.role == Role.SYSTEM), None)

    parts: list[str] = []
    for index, message in enumerate(messages):
        if message.role == Role.SYSTEM:
            continue
        label = TRANSCRIPT_LABELS.get(message.role)
        if label is None:
            get_logger().warning(
                "Skipping message with unsupported role",
                role=role_name(message.role),
                index=index,
            )
            continue
        parts.append(f"{label}: {message.text}\n\n")

    system_prompt = ""
    if system_message is not None and isinstance(system_message.content, str):
        system_prompt = system_message.content

    if wants_json:
        system_prompt += f"\n\n{JSON_DIRECTIVE}"

    return CompiledPrompt(prompt="".join(parts).strip(), system_prompt=system_prompt)


__all__ = ["JSON_DIRECTIVE", "CompiledPrompt", "compile_prompt"]
