"""Shell command tools backed by the process registry.

``execute_command`` waits a bounded amount of time for the command to finish.
When the soft timeout expires it hands back the partial output together with
the command id and leaves the process running; the model can later check on
it with ``get_command_result`` or stop it with ``terminate_command``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import Field

from taskpilot.core.process_registry import ProcessRegistry
from taskpilot.errors import ToolError
from taskpilot.tools.base import Tool, ToolParam, ToolSpec
from taskpilot.types.events import CommandStatus

logger = logging.getLogger(__name__)

POLL_LIMIT = 300
POLL_INTERVAL = 0.1

StatusCallback = Callable[[list[CommandStatus]], None]


class ExecuteCommandParams(ToolParam):
    command: str = Field(description="The CLI command to execute in the workspace directory")


class CommandIdParams(ToolParam):
    command_id: int = Field(description="ID returned by the execute_command tool")


def format_exited(command_id: int, exit_status: int, output: str) -> str:
    return f"Command ID: {command_id}\nExit Status: Exited({exit_status})\nOutput:\n{output}"


def format_running(command_id: int, output: str) -> str:
    return f"Command ID: {command_id}\nCommand Still Running\nOutput:\n{output}"


def format_soft_timeout(command_id: int, output: str) -> str:
    return f"Command ID: {command_id}\nCommand is run\nOutput:\n{output}"


class CommandTools:
    """Holds the shared registry and status sink for the three command tools."""

    def __init__(
        self,
        registry: ProcessRegistry,
        working_dir: str | Path,
        *,
        on_status: StatusCallback | None = None,
        poll_limit: int = POLL_LIMIT,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._registry = registry
        self._working_dir = str(working_dir)
        self._on_status = on_status
        self._poll_limit = poll_limit
        self._poll_interval = poll_interval

    def _poll(self) -> None:
        statuses = self._registry.poll()
        if statuses and self._on_status is not None:
            self._on_status(statuses)

    async def execute_command(self, params: ExecuteCommandParams) -> str:
        logger.info("Executing command '%s'", params.command)
        command_id = await self._registry.spawn(params.command, self._working_dir)
        output = ""
        for _ in range(self._poll_limit):
            self._poll()
            state = self._registry.get(command_id)
            if state is None:
                raise ToolError(f"Command '{params.command}' not found", tool_name="execute_command")
            exit_status, output = state
            if exit_status is not None:
                return format_exited(command_id, exit_status, output)
            await asyncio.sleep(self._poll_interval)
        logger.info("Command %d still running after soft timeout", command_id)
        return format_soft_timeout(command_id, output)

    async def get_command_result(self, params: CommandIdParams) -> str:
        logger.info("Get command result %d", params.command_id)
        self._poll()
        state = self._registry.get(params.command_id)
        if state is None:
            raise ToolError(f"Command '{params.command_id}' not found", tool_name="get_command_result")
        exit_status, output = state
        if exit_status is None:
            return format_running(params.command_id, output)
        return format_exited(params.command_id, exit_status, output)

    async def terminate_command(self, params: CommandIdParams) -> str:
        logger.info("Terminate command %d", params.command_id)
        if self._registry.get(params.command_id) is None:
            raise ToolError(f"Command '{params.command_id}' not found", tool_name="terminate_command")
        self._registry.cancel(params.command_id)
        return f"Command with ID {params.command_id} successfully terminated."

    def tools(self) -> list[Tool]:
        return [
            Tool(
                spec=ToolSpec.from_params(
                    "execute_command",
                    "Execute a CLI command in the workspace directory. Long running commands "
                    "keep running in the background after a short wait; their output can be "
                    "checked later by command ID.",
                    ExecuteCommandParams,
                    requires_approval=True,
                ),
                params=ExecuteCommandParams,
                execute=self.execute_command,
                tags=["command", "exec"],
            ),
            Tool(
                spec=ToolSpec.from_params(
                    "get_command_result",
                    "Retrieve the current output and exit status of a command started by "
                    "execute_command that may still be running.",
                    CommandIdParams,
                ),
                params=CommandIdParams,
                execute=self.get_command_result,
                tags=["command"],
            ),
            Tool(
                spec=ToolSpec.from_params(
                    "terminate_command",
                    "Terminate the command with the given ID.",
                    CommandIdParams,
                    requires_approval=True,
                ),
                params=CommandIdParams,
                execute=self.terminate_command,
                tags=["command", "exec"],
            ),
        ]


def create_command_tools(
    registry: ProcessRegistry,
    working_dir: str | Path,
    *,
    on_status: StatusCallback | None = None,
    poll_limit: int = POLL_LIMIT,
    poll_interval: float = POLL_INTERVAL,
) -> list[Tool]:
    """Create execute_command, get_command_result and terminate_command."""
    return CommandTools(
        registry,
        working_dir,
        on_status=on_status,
        poll_limit=poll_limit,
        poll_interval=poll_interval,
    ).tools()
