"""Offline provider that echoes the prompt back word by word."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence

from taskpilot.providers.base import CompletionStream
from taskpilot.types.messages import (
    Message,
    StreamChunk,
    StreamChunkType,
    TokenUsage,
    ToolResultContent,
)


class EchoProvider:
    """Streams the last user message back. Useful for trying the CLI offline."""

    def __init__(self, *, delay: float = 0.02, **_: object) -> None:
        self._delay = delay

    @property
    def name(self) -> str:
        return "echo"

    async def stream(self, prompt: Message, history: Sequence[Message]) -> CompletionStream:
        if isinstance(prompt.content, ToolResultContent):
            reply = f"Received the result of tool call {prompt.content.id}."
        else:
            reply = f"You said: {prompt.text or ''}"
        return CompletionStream(self._words(reply, len(history)))

    async def _words(self, reply: str, context_size: int) -> AsyncIterator[StreamChunk]:
        words = reply.split(" ")
        for i, word in enumerate(words):
            await asyncio.sleep(self._delay)
            yield StreamChunk(type=StreamChunkType.TEXT, content=word if i == 0 else " " + word)
        input_tokens = context_size + 1
        yield StreamChunk(
            type=StreamChunkType.USAGE,
            usage=TokenUsage(
                input_tokens=input_tokens,
                output_tokens=len(words),
                total_tokens=input_tokens + len(words),
            ),
        )

    async def close(self) -> None:
        pass
