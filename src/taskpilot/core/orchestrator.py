"""Agent orchestrator: the tick-driven control loop.

The agent never blocks on the operator. Each ``step`` handles at most one
control event, forwards process output, advances the model stream by one
item and reports status changes. ``run`` is a thin driver that calls ``step``
on a fixed tick.

Processing rules:

- The stream is only advanced while ``processing`` is set and no tool call is
  waiting for confirmation.
- A non-completion tool that succeeds with an empty payload parks the turn:
  ``processing`` drops and the next ``SendMessage`` becomes that call's result.
- When the stream ends after a tool result the turn continues automatically
  with a new request; otherwise the agent waits for the operator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from taskpilot.core.process_registry import ProcessRegistry
from taskpilot.core.workspace import environment_details
from taskpilot.integrations.persistence.history import HistoryStore
from taskpilot.providers.base import CompletionProvider, CompletionStream
from taskpilot.tools.interaction import COMPLETION_TOOL
from taskpilot.tools.permission import AllowAllPermissions, PermissionChecker
from taskpilot.tools.registry import ToolRegistry
from taskpilot.types.agent import (
    AgentState,
    Completed,
    Error,
    Paused,
    Thinking,
    ToolCall,
    WaitingResponse,
    WaitingUserPrompt,
    describe_state,
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
from taskpilot.types.messages import Message, StreamChunkType, ToolCallContent

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.01
DEFAULT_MAX_CONTEXT_TOKENS = 200_000

TOOL_ERROR_PREFIX = "Tool called with error: "
DENIED_PAYLOAD = "The user denied this operation."
CANCELLED_PAYLOAD = "The user cancelled this operation."

# Tools whose ``path`` argument is shown to the operator after success
HIGHLIGHT_TOOLS = frozenset({"read_file", "write_to_file", "list_files", "replace_in_file"})
NEW_WRITE_TOOL = "write_to_file"


def command_status_sink(output: asyncio.Queue[OutputEvent]) -> Callable[[list[CommandStatus]], None]:
    """Callback for command tools that forwards snapshots as output events."""
    def _emit(statuses: list[CommandStatus]) -> None:
        output.put_nowait(CommandStatusEvent(tuple(statuses)))
    return _emit


class Agent:
    """Drives one conversation through the provider and the tools."""

    def __init__(
        self,
        provider: CompletionProvider,
        tools: ToolRegistry,
        processes: ProcessRegistry,
        *,
        workspace: str | Path,
        control: asyncio.Queue[ControlEvent],
        output: asyncio.Queue[OutputEvent],
        history: HistoryStore | None = None,
        permissions: PermissionChecker | None = None,
        messages: Sequence[Message] = (),
        max_context_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        environment: Callable[[], str] | None = None,
    ) -> None:
        self._provider = provider
        self._tools = tools
        self._processes = processes
        self._workspace = Path(workspace)
        self._control = control
        self._output = output
        self._history = history
        self._permissions = permissions or AllowAllPermissions()
        self._max_context_tokens = max_context_tokens
        self._tick_interval = tick_interval
        self._environment = environment or (lambda: environment_details(self._workspace))

        self._messages: list[Message] = list(messages)
        self._state: AgentState = Paused()
        self._processing = False
        self._has_completion = False
        self._pending_tool_id: str | None = None
        self._pending_confirmation: ToolCallContent | None = None
        self._stream: CompletionStream | None = None
        self._assistant_index: int | None = None
        self._tokens_used = 0
        self._running = False

    # --- Read-only views ---

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def processing(self) -> bool:
        return self._processing

    @property
    def has_completion(self) -> bool:
        return self._has_completion

    @property
    def pending_tool_id(self) -> str | None:
        return self._pending_tool_id

    @property
    def pending_confirmation(self) -> ToolCallContent | None:
        return self._pending_confirmation

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def tokens_used(self) -> int:
        return self._tokens_used

    @property
    def stream_open(self) -> bool:
        return self._stream is not None

    # --- Driver ---

    async def run(self) -> None:
        """Call ``step`` every tick until ``stop`` is called."""
        logger.info("Run agent: %s in %s", self._provider.name, self._workspace)
        self._running = True
        try:
            while self._running:
                await self.step()
                await asyncio.sleep(self._tick_interval)
        finally:
            await self._close_stream()
            logger.info("Stop agent")

    def stop(self) -> None:
        self._running = False

    async def step(self) -> None:
        before = (self._processing, self._state, self._tokens_used)

        try:
            event = self._control.get_nowait()
        except asyncio.QueueEmpty:
            event = None
        if event is not None:
            await self._handle_control(event)

        statuses = self._processes.poll()
        if statuses:
            self._emit(CommandStatusEvent(tuple(statuses)))

        await self._advance()

        if (self._processing, self._state, self._tokens_used) != before:
            logger.debug("Agent state: %s (processing=%s)", describe_state(self._state), self._processing)
            self._emit(AgentStatus(
                tokens_used=self._tokens_used,
                tokens_max=self._max_context_tokens,
                state=self._state,
            ))

    # --- Control events ---

    async def _handle_control(self, event: ControlEvent) -> None:
        match event:
            case SendMessage(text=text):
                logger.info("Send message")
                await self._send_message(text)
            case CancelTask():
                logger.info("Cancel current task")
                await self._cancel_task()
            case NewTask():
                logger.info("New task")
                await self._new_task()
            case ConfirmTool(decision=decision):
                await self._confirm_tool(decision)
            case TerminalData(process_id=process_id, data=data):
                self._processes.send_data(process_id, data)
            case _:
                logger.warning("Ignoring unknown control event %r", event)

    async def _send_message(self, text: str) -> None:
        if self._pending_confirmation is not None:
            # The operator moved on without answering the confirmation
            self._record_result(self._pending_confirmation, CANCELLED_PAYLOAD)
            self._pending_confirmation = None
        if self._pending_tool_id is not None:
            message = Message.tool_result(self._pending_tool_id, text)
            self._pending_tool_id = None
        else:
            message = Message.user(text)
            # A reply still streaming is superseded by the new prompt
            await self._close_stream()
        self._assistant_index = None
        self._add_message(message.with_environment(self._environment()))
        self._processing = True
        self._has_completion = False
        self._state = WaitingResponse()

    async def _cancel_task(self) -> None:
        if self._pending_confirmation is not None:
            self._record_result(self._pending_confirmation, CANCELLED_PAYLOAD)
            self._pending_confirmation = None
        if self._processing:
            await self._close_stream()
            self._assistant_index = None
            self._processing = False
            self._state = Paused()
            self._persist()
        elif not self._has_completion and self._messages and self._pending_tool_id is None:
            logger.info("Resume task")
            self._processing = True
            self._state = WaitingResponse()

    async def _new_task(self) -> None:
        self._processes.stop_all()
        await self._close_stream()
        self._messages.clear()
        self._processing = False
        self._has_completion = False
        self._pending_tool_id = None
        self._pending_confirmation = None
        self._assistant_index = None
        self._tokens_used = 0
        self._persist()
        self._emit(NewTask())
        self._state = Paused()

    async def _confirm_tool(self, decision: ConfirmDecision) -> None:
        call = self._pending_confirmation
        if call is None:
            logger.warning("Ignoring %s: no tool call awaits confirmation", decision)
            return
        self._pending_confirmation = None
        logger.info("Tool %s confirmation: %s", call.name, decision)
        if decision == ConfirmDecision.DENY:
            self._record_result(call, DENIED_PAYLOAD)
            self._state = WaitingResponse()
            return
        if decision == ConfirmDecision.ALWAYS_APPROVE:
            self._permissions.always_approve(call.name)
        await self._dispatch(call)

    # --- Stream ---

    async def _advance(self) -> None:
        if not self._processing or self._pending_confirmation is not None:
            return
        if self._stream is None:
            if not self._messages:
                return
            try:
                self._stream = await self._provider.stream(self._messages[-1], self._messages[:-1])
            except Exception as e:
                logger.exception("Failed to open completion stream")
                await self._fail(str(e))
                return

        try:
            chunk = await anext(self._stream)
        except StopAsyncIteration:
            self._finish_stream()
            return
        except Exception as e:
            logger.exception("Completion stream failed")
            await self._fail(str(e))
            return

        match chunk.type:
            case StreamChunkType.TEXT:
                self._append_text(chunk.content or "")
            case StreamChunkType.TOOL_CALL if chunk.tool_call is not None:
                await self._on_tool_call(chunk.tool_call)
            case StreamChunkType.ERROR:
                await self._fail(chunk.error or "Unknown stream error")
            case _:
                # Usage reports are collected by the stream itself
                pass

    def _append_text(self, delta: str) -> None:
        if self._assistant_index is None:
            self._add_message(Message.assistant(delta))
            self._assistant_index = len(self._messages) - 1
        else:
            current = self._messages[self._assistant_index].text or ""
            updated = Message.assistant(current + delta)
            self._messages[self._assistant_index] = updated
            self._emit(UpdateMessage(updated))
        self._state = Thinking()

    async def _on_tool_call(self, call: ToolCallContent) -> None:
        logger.info("Tool call: %s", call.name)
        self._assistant_index = None
        self._add_message(Message.tool_call(call))

        permission = await self._permissions.check(call.name, call.arguments)
        if permission.needs_confirmation:
            self._pending_confirmation = call
            self._state = ToolCall(call, needs_confirmation=True)
            return
        if not permission.allowed:
            logger.info("Tool %s denied: %s", call.name, permission.reason)
            self._state = ToolCall(call)
            self._record_result(call, f"Permission denied: {permission.reason}")
            return
        await self._dispatch(call)

    async def _dispatch(self, call: ToolCallContent) -> None:
        self._state = ToolCall(call)
        outcome = await self._tools.execute(call.name, call.arguments)
        if outcome.is_error:
            logger.error("Error calling tool %s: %s", call.name, outcome.error)
            self._record_result(call, f"{TOOL_ERROR_PREFIX}{outcome.error}")
            return

        if not outcome.result and call.name != COMPLETION_TOOL:
            logger.info("Stop processing because empty result from tool: %s", call.name)
            self._pending_tool_id = call.id
            self._processing = False
            self._state = WaitingUserPrompt()
            return

        self._record_result(call, outcome.result)
        if call.name in HIGHLIGHT_TOOLS:
            path = call.arguments.get("path")
            if isinstance(path, str):
                self._emit(HighlightFile(path=path, is_new_write=call.name == NEW_WRITE_TOOL))
        if call.name == COMPLETION_TOOL:
            logger.info("Stop task with success")
            self._has_completion = True

    def _finish_stream(self) -> None:
        assert self._stream is not None
        usage = self._stream.usage
        self._stream = None
        self._assistant_index = None
        if usage is not None:
            logger.info("Usage: %s", usage)
            self._tokens_used = usage.total_tokens
        self._persist()

        if self._has_completion:
            self._pending_tool_id = None
            self._processing = False
            self._state = Completed()
        elif not self._messages or not self._messages[-1].is_tool_result:
            self._processing = False
            self._state = WaitingUserPrompt()
        else:
            self._state = WaitingResponse()

    async def _fail(self, message: str) -> None:
        await self._close_stream()
        self._assistant_index = None
        self._processing = False
        self._has_completion = False
        self._persist()
        self._emit(ErrorEvent(message))
        self._state = Error(message)

    async def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            await stream.aclose()
        except Exception:
            logger.warning("Error while closing completion stream", exc_info=True)

    # --- Helpers ---

    def _record_result(self, call: ToolCallContent, payload: str) -> None:
        message = Message.tool_result(call.id, payload)
        self._add_message(message.with_environment(self._environment()))

    def _add_message(self, message: Message) -> None:
        self._messages.append(message)
        self._emit(AddMessage(message))

    def _emit(self, event: OutputEvent) -> None:
        self._output.put_nowait(event)

    def _persist(self) -> None:
        if self._history is not None:
            self._history.save(self._messages)
