"""Agent state as a closed tagged union.

Exactly one variant is active at a time. The orchestrator owns the current
value; observers only ever receive copies through ``AgentStatus`` events.
"""

from __future__ import annotations

from dataclasses import dataclass

from taskpilot.types.messages import ToolCallContent


@dataclass(frozen=True, slots=True)
class Paused:
    """No turn is running; the operator may resume or send a message."""


@dataclass(frozen=True, slots=True)
class WaitingResponse:
    """A request was issued and the first model output has not arrived yet."""


@dataclass(frozen=True, slots=True)
class Thinking:
    """The model is streaming text."""


@dataclass(frozen=True, slots=True)
class WaitingUserPrompt:
    """The turn ended and the agent needs input from the operator."""


@dataclass(frozen=True, slots=True)
class Error:
    """The last turn failed with a provider/stream error."""

    message: str


@dataclass(frozen=True, slots=True)
class Completed:
    """The model invoked the completion tool and the turn finished."""


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool call is executing or awaiting confirmation."""

    call: ToolCallContent
    needs_confirmation: bool = False


AgentState = Paused | WaitingResponse | Thinking | WaitingUserPrompt | Error | Completed | ToolCall


def state_name(state: AgentState) -> str:
    """Stable snake_case name of a state variant."""
    match state:
        case Paused():
            return "paused"
        case WaitingResponse():
            return "waiting_response"
        case Thinking():
            return "thinking"
        case WaitingUserPrompt():
            return "waiting_user_prompt"
        case Error():
            return "error"
        case Completed():
            return "completed"
        case ToolCall():
            return "tool_call"
    raise TypeError(f"Not an agent state: {state!r}")


def is_pause_point(state: AgentState) -> bool:
    """Whether the agent is blocked on the operator in this state."""
    match state:
        case Paused() | WaitingUserPrompt() | Error() | Completed():
            return True
        case ToolCall(needs_confirmation=True):
            return True
        case ToolCall(needs_confirmation=False):
            return False
        case WaitingResponse() | Thinking():
            return False
    raise TypeError(f"Not an agent state: {state!r}")


def awaits_confirmation(state: AgentState) -> bool:
    """Whether a tool call is blocked on an approve/deny decision."""
    match state:
        case ToolCall(needs_confirmation=True):
            return True
    return False


def describe_state(state: AgentState) -> str:
    """Short human-readable description, used for logs and plain output."""
    match state:
        case Error(message=message):
            return f"error: {message}"
        case ToolCall(call=call, needs_confirmation=True):
            return f"awaiting confirmation for {call.name}"
        case ToolCall(call=call):
            return f"running {call.name}"
    return state_name(state).replace("_", " ")
