"""Mock completion provider for testing."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from taskpilot.errors import ProviderError
from taskpilot.providers.base import CompletionStream
from taskpilot.types.messages import (
    Message,
    StreamChunk,
    StreamChunkType,
    TokenUsage,
    ToolCallContent,
)


def _default_usage() -> TokenUsage:
    return TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15)


@dataclass
class MockProvider:
    """Replays scripted chunk lists, one list per opened stream.

    Once the script runs out every stream yields ``default_text``.
    """

    turns: list[list[StreamChunk]] = field(default_factory=list)
    default_text: str = "Mock response"
    chunk_delay: float = 0.0
    open_error: Exception | None = None
    call_history: list[tuple[Message, list[Message]]] = field(default_factory=list)
    closed_streams: int = 0
    _turn_index: int = field(default=0, init=False)

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_count(self) -> int:
        return len(self.call_history)

    async def stream(self, prompt: Message, history: Sequence[Message]) -> CompletionStream:
        self.call_history.append((prompt, list(history)))
        if self.open_error is not None:
            raise self.open_error
        if self._turn_index < len(self.turns):
            chunks = self.turns[self._turn_index]
            self._turn_index += 1
        else:
            chunks = [
                StreamChunk(type=StreamChunkType.TEXT, content=self.default_text),
                StreamChunk(type=StreamChunkType.USAGE, usage=_default_usage()),
            ]
        return CompletionStream(self._replay(list(chunks)))

    async def _replay(self, chunks: list[StreamChunk]) -> AsyncIterator[StreamChunk]:
        try:
            for chunk in chunks:
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)
                yield chunk
        finally:
            self.closed_streams += 1

    def add_turn(self, *chunks: StreamChunk) -> MockProvider:
        self.turns.append(list(chunks))
        return self

    def add_text(self, *deltas: str, usage: TokenUsage | None = None) -> MockProvider:
        chunks = [StreamChunk(type=StreamChunkType.TEXT, content=d) for d in deltas]
        chunks.append(StreamChunk(type=StreamChunkType.USAGE, usage=usage or _default_usage()))
        return self.add_turn(*chunks)

    def add_tool_call(
        self,
        call_id: str,
        name: str,
        arguments: dict | None = None,
        *,
        text: str = "",
        usage: TokenUsage | None = None,
    ) -> MockProvider:
        chunks: list[StreamChunk] = []
        if text:
            chunks.append(StreamChunk(type=StreamChunkType.TEXT, content=text))
        chunks.append(StreamChunk(
            type=StreamChunkType.TOOL_CALL,
            tool_call=ToolCallContent(id=call_id, name=name, arguments=dict(arguments or {})),
        ))
        chunks.append(StreamChunk(type=StreamChunkType.USAGE, usage=usage or _default_usage()))
        return self.add_turn(*chunks)

    def add_error(self, message: str, *, text: str = "") -> MockProvider:
        chunks: list[StreamChunk] = []
        if text:
            chunks.append(StreamChunk(type=StreamChunkType.TEXT, content=text))
        chunks.append(StreamChunk(type=StreamChunkType.ERROR, error=message))
        return self.add_turn(*chunks)

    def fail_on_open(self, message: str = "connection refused") -> MockProvider:
        self.open_error = ProviderError(message, provider=self.name)
        return self

    def reset(self) -> None:
        self.call_history.clear()
        self._turn_index = 0

    async def close(self) -> None:
        """No-op for mock provider."""
