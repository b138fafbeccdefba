"""Shared value types."""

from taskpilot.types.agent import (
    AgentState,
    Completed,
    Error,
    Paused,
    Thinking,
    ToolCall,
    WaitingResponse,
    WaitingUserPrompt,
    awaits_confirmation,
    describe_state,
    is_pause_point,
    state_name,
)
from taskpilot.types.events import (
    AddMessage,
    AgentStatus,
    CancelTask,
    CommandStatus,
    CommandStatusEvent,
    ConfirmDecision,
    ConfirmTool,
    ControlEvent,
    ErrorEvent,
    HighlightFile,
    NewTask,
    OutputEvent,
    SendMessage,
    TerminalData,
    UpdateMessage,
)
from taskpilot.types.messages import (
    Message,
    Role,
    StreamChunk,
    StreamChunkType,
    TextContent,
    TokenUsage,
    ToolCallContent,
    ToolResultContent,
)

__all__ = [
    "AddMessage",
    "AgentState",
    "AgentStatus",
    "CancelTask",
    "CommandStatus",
    "CommandStatusEvent",
    "Completed",
    "ConfirmDecision",
    "ConfirmTool",
    "ControlEvent",
    "Error",
    "ErrorEvent",
    "HighlightFile",
    "Message",
    "NewTask",
    "OutputEvent",
    "Paused",
    "Role",
    "SendMessage",
    "StreamChunk",
    "StreamChunkType",
    "TerminalData",
    "TextContent",
    "Thinking",
    "TokenUsage",
    "ToolCall",
    "ToolCallContent",
    "ToolResultContent",
    "UpdateMessage",
    "WaitingResponse",
    "WaitingUserPrompt",
    "awaits_confirmation",
    "describe_state",
    "is_pause_point",
    "state_name",
]
