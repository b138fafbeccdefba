"""Conversation history persistence.

The whole conversation is written as one pretty-printed JSON array after
every stream termination and on New Task. There is no schema version tag.
Write failures are logged and swallowed; the in-memory history stays the
source of truth.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from taskpilot.types.messages import Message

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "history.json"


def serialize_history(messages: Sequence[Message]) -> str:
    return json.dumps([m.to_dict() for m in messages], indent=2, ensure_ascii=False)


def deserialize_history(text: str) -> list[Message]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("History document must be a JSON array")
    return [Message.from_dict(item) for item in data]


class HistoryStore:
    """Reads and writes ``history.json`` in a data directory."""

    def __init__(self, data_dir: str | Path) -> None:
        self._path = Path(data_dir) / HISTORY_FILE_NAME

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> list[Message]:
        """Load persisted history; empty list if there is none or it is unreadable."""
        if not self._path.is_file():
            return []
        try:
            return deserialize_history(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Ignoring unreadable history %s: %s", self._path, exc)
            return []

    def save(self, messages: Sequence[Message]) -> bool:
        """Atomically replace the history file. Returns False on failure."""
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as handle:
                handle.write(serialize_history(messages) + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.error("Failed to persist history to %s: %s", self._path, exc)
            return False
        logger.debug("Persisted %d messages to %s", len(messages), self._path)
        return True
