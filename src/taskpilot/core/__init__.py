"""Core execution engine."""

from taskpilot.core.process_registry import ProcessRecord, ProcessRegistry
from taskpilot.core.orchestrator import Agent, command_status_sink
from taskpilot.core.workspace import environment_details, prepare_system_prompt

__all__ = [
    "Agent",
    "ProcessRecord",
    "ProcessRegistry",
    "command_status_sink",
    "environment_details",
    "prepare_system_prompt",
]
