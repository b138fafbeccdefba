"""Conversation message types.

A message has a role and exactly one content item: plain text, a tool call
requested by the model, or the result of a tool call. User messages may also
carry ``environment`` metadata with a snapshot of the workspace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    """Message role in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"


class StreamChunkType(StrEnum):
    """Type of streaming chunk."""

    TEXT = "text"
    TOOL_CALL = "tool_call"
    USAGE = "usage"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class TextContent:
    """Plain text content."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolCallContent:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResultContent:
    """Result payload correlated to a tool call by id."""

    id: str
    payload: str


Content = TextContent | ToolCallContent | ToolResultContent


@dataclass
class Message:
    """A conversation message."""

    role: Role
    content: Content
    metadata: dict[str, Any] | None = None

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=Role.USER, content=TextContent(text))

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=Role.ASSISTANT, content=TextContent(text))

    @classmethod
    def tool_call(cls, call: ToolCallContent) -> Message:
        return cls(role=Role.ASSISTANT, content=call)

    @classmethod
    def tool_result(cls, call_id: str, payload: str) -> Message:
        return cls(role=Role.USER, content=ToolResultContent(id=call_id, payload=payload))

    @property
    def text(self) -> str | None:
        if isinstance(self.content, TextContent):
            return self.content.text
        return None

    @property
    def is_tool_call(self) -> bool:
        return isinstance(self.content, ToolCallContent)

    @property
    def is_tool_result(self) -> bool:
        return isinstance(self.content, ToolResultContent)

    @property
    def environment(self) -> str | None:
        """Workspace snapshot attached to the message, if any."""
        if self.metadata is None:
            return None
        return self.metadata.get("environment")

    def with_environment(self, environment: str) -> Message:
        """Attach a workspace snapshot, returning the same message."""
        if self.metadata is None:
            self.metadata = {}
        self.metadata["environment"] = environment
        return self

    def to_dict(self) -> dict[str, Any]:
        content = self.content
        if isinstance(content, TextContent):
            data: dict[str, Any] = {"type": "text", "text": content.text}
        elif isinstance(content, ToolCallContent):
            data = {
                "type": "tool_call",
                "id": content.id,
                "name": content.name,
                "arguments": content.arguments,
            }
        else:
            data = {"type": "tool_result", "id": content.id, "payload": content.payload}
        result: dict[str, Any] = {"role": str(self.role), "content": data}
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        raw = data["content"]
        kind = raw.get("type")
        content: Content
        if kind == "text":
            content = TextContent(raw["text"])
        elif kind == "tool_call":
            content = ToolCallContent(
                id=raw["id"], name=raw["name"], arguments=dict(raw.get("arguments") or {}),
            )
        elif kind == "tool_result":
            content = ToolResultContent(id=raw["id"], payload=raw["payload"])
        else:
            raise ValueError(f"Unknown message content type: {kind!r}")
        metadata = data.get("metadata")
        return cls(role=Role(data["role"]), content=content, metadata=dict(metadata) if metadata else None)


@dataclass
class TokenUsage:
    """Token consumption metrics."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(slots=True)
class StreamChunk:
    """A chunk from a streaming completion."""

    type: StreamChunkType
    content: str | None = None
    tool_call: ToolCallContent | None = None
    usage: TokenUsage | None = None
    error: str | None = None
