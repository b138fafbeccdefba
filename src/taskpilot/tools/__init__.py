"""Tool system for taskpilot."""

from taskpilot.tools.base import Tool, ToolDefinition, ToolParam, ToolSpec
from taskpilot.tools.permission import (
    AllowAllPermissions,
    ModePermissionChecker,
    PermissionChecker,
    PermissionDecision,
    PermissionMode,
    PermissionResult,
)
from taskpilot.tools.registry import ToolRegistry, ToolResult

__all__ = [
    "Tool",
    "ToolDefinition",
    "ToolParam",
    "ToolSpec",
    "ToolRegistry",
    "ToolResult",
    "PermissionChecker",
    "PermissionDecision",
    "PermissionMode",
    "PermissionResult",
    "AllowAllPermissions",
    "ModePermissionChecker",
]
