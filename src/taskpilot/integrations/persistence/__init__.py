"""Persistence integrations."""

from taskpilot.integrations.persistence.history import (
    HISTORY_FILE_NAME,
    HistoryStore,
    deserialize_history,
    serialize_history,
)

__all__ = [
    "HISTORY_FILE_NAME",
    "HistoryStore",
    "deserialize_history",
    "serialize_history",
]
