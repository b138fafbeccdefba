"""Tool registry for managing and executing tools."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from taskpilot.errors import ToolError, ToolNotFoundError, ToolTimeoutError
from taskpilot.tools.base import Tool, ToolDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of one tool dispatch.

    ``result`` may legitimately be empty; only ``error`` marks a failure.
    """

    result: str = ""
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ToolRegistry:
    """Routes tool invocations by name. Never raises from ``execute``."""

    def __init__(self, *, default_timeout: float | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._default_timeout = default_timeout

    @property
    def tool_count(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        return [tool.to_definition() for tool in self._tools.values()]

    def requires_approval(self, name: str) -> bool:
        tool = self._tools.get(name)
        return tool is not None and tool.requires_approval

    async def execute(
        self,
        tool_name: str,
        args: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        effective_timeout = timeout or self._default_timeout
        try:
            tool = self._tools.get(tool_name)
            if tool is None:
                raise ToolNotFoundError(tool_name)
            params = tool.validate(args)
            logger.info("Executing tool %s", tool_name)
            if effective_timeout is None:
                result = await tool.execute(params)
            else:
                try:
                    result = await asyncio.wait_for(tool.execute(params), timeout=effective_timeout)
                except asyncio.TimeoutError:
                    raise ToolTimeoutError(tool_name, effective_timeout) from None
            return ToolResult(result=result)
        except ToolError as e:
            logger.warning("Tool %s failed: %s", tool_name, e)
            return ToolResult(error=str(e))
        except Exception as e:
            logger.exception("Tool %s raised unexpectedly", tool_name)
            return ToolResult(error=f"{type(e).__name__}: {e}")
