"""Standard tool registry creation."""

from __future__ import annotations

from pathlib import Path

from taskpilot.core.process_registry import ProcessRegistry
from taskpilot.tools.execute_command import (
    POLL_INTERVAL,
    POLL_LIMIT,
    StatusCallback,
    create_command_tools,
)
from taskpilot.tools.file_ops import create_file_tools
from taskpilot.tools.interaction import create_interaction_tools
from taskpilot.tools.registry import ToolRegistry
from taskpilot.tools.search import create_search_tools
from taskpilot.tools.web import create_web_tools


def create_standard_registry(
    working_dir: str | Path,
    process_registry: ProcessRegistry,
    *,
    on_command_status: StatusCallback | None = None,
    command_poll_limit: int = POLL_LIMIT,
    command_poll_interval: float = POLL_INTERVAL,
    enable_web: bool = True,
) -> ToolRegistry:
    """Create a tool registry with all built-in tools."""
    registry = ToolRegistry()
    for tool in create_file_tools(working_dir):
        registry.register(tool)
    for tool in create_search_tools(working_dir):
        registry.register(tool)
    for tool in create_command_tools(
        process_registry,
        working_dir,
        on_status=on_command_status,
        poll_limit=command_poll_limit,
        poll_interval=command_poll_interval,
    ):
        registry.register(tool)
    for tool in create_interaction_tools():
        registry.register(tool)
    if enable_web:
        for tool in create_web_tools():
            registry.register(tool)
    return registry
