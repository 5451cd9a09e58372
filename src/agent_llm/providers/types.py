"""
Core types for the provider contract.

These types are shared by every backend that plugs into the memory
application: role-tagged messages in, plain text or an assistant response
(optionally carrying tool calls) out.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import InvalidMessageError


class Role(str, Enum):
    """Message roles in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


# Image references use the OpenAI content shape:
#   {"type": "image_url", "image_url": {"url": "https://..."}}
ImageReference = dict[str, Any]
MessageContent = str | ImageReference


def role_name(role: Role | str) -> str:
    """String value of a role, whether a Role member or a raw string."""
    return role.value if isinstance(role, Role) else role


_ROLE_VALUES = frozenset(r.value for r in Role)


def image_reference(url: str) -> ImageReference:
    """Build an image reference content value."""
    return {"type": "image_url", "image_url": {"url": url}}


@dataclass
class ToolCall:
    """A tool invocation the agent emitted. Surfaced, never executed."""

    name: str
    arguments: str  # JSON string of arguments
    id: str | None = None

    def parse_arguments(self) -> dict[str, Any]:
        """Parse the JSON arguments string."""
        return json.loads(self.arguments) if self.arguments else {}

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name, "arguments": self.arguments}
        if self.id is not None:
            d["id"] = self.id
        return d


@dataclass
class Message:
    """A message in a conversation."""

    role: Role | str
    content: MessageContent = ""

    @property
    def is_image(self) -> bool:
        return isinstance(self.content, dict)

    @property
    def text(self) -> str:
        """The textual content; for an image reference, its URL."""
        if isinstance(self.content, dict):
            return self.content["image_url"]["url"]
        return self.content

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-compatible dictionary format."""
        return {"role": role_name(self.role), "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """
        Create a Message from a dictionary.

        Roles outside Role are kept as plain strings; the prompt compiler
        leaves such messages out of the transcript.
        """
        role = data.get("role")
        if not isinstance(role, str) or not role:
            raise InvalidMessageError(f"Invalid message role in {data!r}")
        if role in _ROLE_VALUES:
            role = Role(role)
        content = data.get("content")
        if content is None:
            content = ""
        if isinstance(content, dict) and "url" not in content.get("image_url", {}):
            raise InvalidMessageError(f"Unsupported message content: {content!r}")
        return cls(role=role, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        """Create a user message."""
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        """Create an assistant message."""
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def image(cls, url: str, role: Role = Role.USER) -> Message:
        """Create a message whose content is an image reference."""
        return cls(role=role, content=image_reference(url))


@dataclass
class LLMResponse:
    """
    Structured form of a provider response.

    Backends return bare text when there is nothing beyond the text to report;
    this form is used when tool calls were observed, and by ``generate_chat``.
    """

    content: str
    role: str = Role.ASSISTANT.value
    tool_calls: list[ToolCall] | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"content": self.content, "role": self.role}
        if self.tool_calls:
            d["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return d


# Type aliases for convenience
MessageInput = str | dict[str, Any] | Message | Sequence[str | dict[str, Any] | Message]
ResponseFormat = str | dict[str, Any] | None

JSON_OBJECT = "json_object"


def response_format_type(response_format: ResponseFormat) -> str | None:
    """Return the ``type`` of a response format given as a string or dict."""
    if response_format is None:
        return None
    if isinstance(response_format, str):
        return response_format
    if isinstance(response_format, dict):
        return response_format.get("type")
    raise TypeError(f"Unsupported response_format: {type(response_format)}")


def wants_json(response_format: ResponseFormat) -> bool:
    """True when the caller asked for a bare JSON object."""
    return response_format_type(response_format) == JSON_OBJECT


def normalize_messages(messages: MessageInput) -> list[Message]:
    """
    Normalize various message input formats to a list of Message objects.

    Accepts:
    - str: Converted to single user message
    - dict: Converted using Message.from_dict
    - Message: Used as-is
    - Sequence of the above
    """
    if isinstance(messages, str):
        return [Message.user(messages)]

    if isinstance(messages, Message):
        return [messages]

    if isinstance(messages, dict):
        return [Message.from_dict(messages)]

    if isinstance(messages, Sequence):
        result = []
        for msg in messages:
            if isinstance(msg, str):
                result.append(Message.user(msg))
            elif isinstance(msg, Message):
                result.append(msg)
            elif isinstance(msg, dict):
                result.append(Message.from_dict(msg))
            else:
                raise InvalidMessageError(f"Unsupported message type: {type(msg)}")
        return result

    raise InvalidMessageError(f"Unsupported messages type: {type(messages)}")


__all__ = [
    "Role",
    "ImageReference",
    "MessageContent",
    "image_reference",
    "role_name",
    "ToolCall",
    "Message",
    "LLMResponse",
    "MessageInput",
    "ResponseFormat",
    "JSON_OBJECT",
    "response_format_type",
    "wants_json",
    "normalize_messages",
]
