"""Control and output events crossing the UI <-> orchestrator boundary.

Control events flow from the UI into the orchestrator; output events flow
back. Both are immutable values delivered through unbounded FIFO queues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from taskpilot.types.agent import AgentState, Paused
from taskpilot.types.messages import Message


class ConfirmDecision(StrEnum):
    """Operator answer to a tool confirmation request."""

    APPROVE = "approve"
    DENY = "deny"
    ALWAYS_APPROVE = "always_approve"


# --- Control events (UI -> orchestrator) ---


@dataclass(frozen=True, slots=True)
class SendMessage:
    text: str


@dataclass(frozen=True, slots=True)
class TerminalData:
    """Bytes to forward to the stdin of a running process."""

    process_id: int
    data: bytes


@dataclass(frozen=True, slots=True)
class ConfirmTool:
    decision: ConfirmDecision


@dataclass(frozen=True, slots=True)
class CancelTask:
    """Cancel the running turn, or resume an unfinished task when idle."""


@dataclass(frozen=True, slots=True)
class NewTask:
    """Discard the conversation and start over.

    Also used as the output notification that a reset happened.
    """


ControlEvent = SendMessage | TerminalData | ConfirmTool | CancelTask | NewTask


# --- Output events (orchestrator -> UI) ---


@dataclass(frozen=True, slots=True)
class CommandStatus:
    """Snapshot of one process record."""

    id: int
    command: str
    output: str
    is_active: bool


@dataclass(frozen=True, slots=True)
class AddMessage:
    message: Message


@dataclass(frozen=True, slots=True)
class UpdateMessage:
    """Replaces the last message shown to the user."""

    message: Message


@dataclass(frozen=True, slots=True)
class CommandStatusEvent:
    statuses: tuple[CommandStatus, ...]


@dataclass(frozen=True, slots=True)
class AgentStatus:
    tokens_used: int = 0
    tokens_max: int = 0
    state: AgentState = field(default_factory=Paused)


@dataclass(frozen=True, slots=True)
class HighlightFile:
    path: str
    is_new_write: bool = False


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    message: str


OutputEvent = (
    AddMessage
    | UpdateMessage
    | NewTask
    | CommandStatusEvent
    | AgentStatus
    | HighlightFile
    | ErrorEvent
)
