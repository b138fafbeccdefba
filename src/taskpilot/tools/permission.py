"""Permission checking for tool execution."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Tools that change the workspace, run commands or reach the network
APPROVAL_REQUIRED_TOOLS = frozenset({
    "write_to_file",
    "replace_in_file",
    "execute_command",
    "terminate_command",
    "web_fetch",
})


class PermissionMode(StrEnum):
    FULL_AUTONOMOUS = "full_autonomous"
    MANUAL_APPROVAL = "manual_approval"
    DENY_ALL = "deny_all"


class PermissionDecision(StrEnum):
    ALLOW = "allow"
    DENY = "deny"
    ASK = "ask"


@dataclass(slots=True)
class PermissionResult:
    """Result of a permission check."""

    decision: PermissionDecision
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.decision == PermissionDecision.ALLOW

    @property
    def needs_confirmation(self) -> bool:
        return self.decision == PermissionDecision.ASK

    @staticmethod
    def allow(reason: str | None = None) -> PermissionResult:
        return PermissionResult(decision=PermissionDecision.ALLOW, reason=reason)

    @staticmethod
    def deny(reason: str) -> PermissionResult:
        return PermissionResult(decision=PermissionDecision.DENY, reason=reason)

    @staticmethod
    def ask(reason: str) -> PermissionResult:
        return PermissionResult(decision=PermissionDecision.ASK, reason=reason)


@runtime_checkable
class PermissionChecker(Protocol):
    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult: ...

    def always_approve(self, tool_name: str) -> None: ...


class AllowAllPermissions:
    """Permission checker that allows everything."""

    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult:
        return PermissionResult.allow()

    def always_approve(self, tool_name: str) -> None:
        pass


class ModePermissionChecker:
    """Decides per tool call according to the configured permission mode.

    Tools outside ``approval_required`` are always allowed. Names passed to
    ``always_approve`` skip confirmation for the rest of the session.
    """

    def __init__(
        self,
        mode: PermissionMode | str = PermissionMode.FULL_AUTONOMOUS,
        *,
        approval_required: Iterable[str] = APPROVAL_REQUIRED_TOOLS,
    ) -> None:
        self._mode = PermissionMode(mode)
        self._approval_required = frozenset(approval_required)
        self._always_approved: set[str] = set()

    @property
    def mode(self) -> PermissionMode:
        return self._mode

    @property
    def always_approved(self) -> frozenset[str]:
        return frozenset(self._always_approved)

    def always_approve(self, tool_name: str) -> None:
        logger.info("Tool %s approved for the rest of the session", tool_name)
        self._always_approved.add(tool_name)

    async def check(self, tool_name: str, args: dict[str, Any]) -> PermissionResult:
        if tool_name not in self._approval_required:
            return PermissionResult.allow()
        if self._mode == PermissionMode.FULL_AUTONOMOUS:
            return PermissionResult.allow("full autonomous mode")
        if self._mode == PermissionMode.DENY_ALL:
            return PermissionResult.deny(f"'{tool_name}' is not allowed in deny_all mode")
        if tool_name in self._always_approved:
            return PermissionResult.allow("always approved")
        return PermissionResult.ask(f"'{tool_name}' requires approval")
