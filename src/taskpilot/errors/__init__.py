"""Taskpilot error hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of error for classification and handling."""

    PROVIDER = "provider"
    TOOL = "tool"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class AgentError(Exception):
    """Base error for all agent exceptions."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.details: dict[str, Any] = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, category={self.category!r})"


class ProviderError(AgentError):
    """Error from the completion stream (network, model, protocol).

    Turn-fatal: the orchestrator surfaces it to the user and stops the turn.
    """

    def __init__(self, message: str, *, provider: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.PROVIDER, **kwargs)
        self.provider = provider


class ToolError(AgentError):
    """Error during tool execution.

    Recoverable: the orchestrator feeds the text back to the model as the
    tool result.
    """

    def __init__(self, message: str, *, tool_name: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.TOOL, **kwargs)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Requested tool does not exist."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool not found: {tool_name}", tool_name=tool_name)


class ToolArgumentsError(ToolError):
    """Tool arguments failed validation."""

    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__(f"Invalid arguments for '{tool_name}': {reason}", tool_name=tool_name)
        self.reason = reason


class ProcessSpawnError(ToolError):
    """An external command could not be started."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Failed to spawn '{command}': {reason}", tool_name="execute_command")
        self.command = command


class ConfigurationError(AgentError):
    """Invalid or missing configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.CONFIGURATION)


class ToolTimeoutError(ToolError):
    """Tool execution exceeded its time budget."""

    def __init__(self, tool_name: str, timeout: float) -> None:
        super().__init__(f"Tool '{tool_name}' timed out after {timeout}s", tool_name=tool_name)
        self.timeout = timeout
