"""Completion provider protocol and the stream wrapper it returns.

A provider turns a conversation into an incremental sequence of
``StreamChunk`` items: text deltas, tool calls, a usage report, or an error.
The concrete wire protocol is up to the implementation.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from taskpilot.types.messages import Message, StreamChunk, StreamChunkType, TokenUsage


class CompletionStream:
    """Async iterator over the chunks of one completion.

    ``usage`` holds the last reported token usage and is complete once the
    iterator is exhausted.
    """

    def __init__(self, chunks: AsyncIterator[StreamChunk]) -> None:
        self._chunks = chunks
        self._usage: TokenUsage | None = None
        self._closed = False

    @property
    def usage(self) -> TokenUsage | None:
        return self._usage

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> CompletionStream:
        return self

    async def __anext__(self) -> StreamChunk:
        if self._closed:
            raise StopAsyncIteration
        chunk = await self._chunks.__anext__()
        if chunk.type == StreamChunkType.USAGE and chunk.usage is not None:
            self._usage = chunk.usage
        return chunk

    async def aclose(self) -> None:
        """Abort the stream; further iteration stops immediately."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._chunks, "aclose", None)
        if close is not None:
            result = close()
            if inspect.isawaitable(result):
                await result


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol for completion providers."""

    @property
    def name(self) -> str: ...

    async def stream(self, prompt: Message, history: Sequence[Message]) -> CompletionStream:
        """Open a completion for ``prompt`` with ``history`` as prior context."""
        ...

    async def close(self) -> None:
        """Release resources (e.g. HTTP client connections)."""
        ...
