"""Line-oriented console bridge between a terminal and the agent queues.

Input lines become control events; output events are rendered as plain
text. Streaming assistant text is written incrementally on one line.
"""

from __future__ import annotations

from dataclasses import dataclass

from taskpilot.types.agent import describe_state, is_pause_point
from taskpilot.types.events import (
    AddMessage,
    AgentStatus,
    CancelTask,
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
from taskpilot.types.messages import Message, Role, TextContent, ToolCallContent, ToolResultContent

HELP_TEXT = """\
Commands:
  /cancel            cancel the running turn, or resume an unfinished task
  /new               start a new task
  /approve           approve the pending tool call
  /always            approve this tool for the rest of the session
  /deny              deny the pending tool call
  /term ID TEXT      send a line of input to a running command
  /help              show this help
  /quit              exit
Anything else is sent to the agent as a message."""

RESULT_PREVIEW_LINES = 8


class Quit:
    """Marker returned by ``parse_line`` for ``/quit``."""


class ShowHelp:
    """Marker returned by ``parse_line`` for ``/help``."""


QUIT = Quit()
SHOW_HELP = ShowHelp()

_SIMPLE_COMMANDS: dict[str, ControlEvent] = {
    "/cancel": CancelTask(),
    "/new": NewTask(),
    "/approve": ConfirmTool(ConfirmDecision.APPROVE),
    "/always": ConfirmTool(ConfirmDecision.ALWAYS_APPROVE),
    "/deny": ConfirmTool(ConfirmDecision.DENY),
}


def parse_line(line: str) -> ControlEvent | Quit | ShowHelp | None:
    """Translate one input line. Blank lines yield None."""
    text = line.rstrip("\r\n")
    stripped = text.strip()
    if not stripped:
        return None
    command, _, rest = stripped.partition(" ")
    if command == "/quit":
        return QUIT
    if command == "/help":
        return SHOW_HELP
    if command in _SIMPLE_COMMANDS and not rest:
        return _SIMPLE_COMMANDS[command]
    if command == "/term":
        process_id, _, data = rest.partition(" ")
        if process_id.isdigit():
            return TerminalData(int(process_id), (data + "\n").encode("utf-8"))
        return SHOW_HELP
    return SendMessage(text)


def _preview(text: str) -> str:
    lines = text.splitlines()
    if len(lines) <= RESULT_PREVIEW_LINES:
        return text
    hidden = len(lines) - RESULT_PREVIEW_LINES
    return "\n".join(lines[:RESULT_PREVIEW_LINES]) + f"\n... ({hidden} more lines)"


def format_message(message: Message) -> str:
    content = message.content
    if isinstance(content, TextContent):
        prefix = "you" if message.role == Role.USER else "assistant"
        return f"{prefix}: {content.text}"
    if isinstance(content, ToolCallContent):
        args = ", ".join(f"{k}={v!r}" for k, v in content.arguments.items())
        return f"[tool] {content.name}({args})"
    if isinstance(content, ToolResultContent):
        return f"[result {content.id}]\n{_preview(content.payload)}"
    return repr(content)


@dataclass
class ConsoleRenderer:
    """Turns output events into text chunks ready to be written."""

    _streaming: bool = False
    _printed: int = 0
    _last_state: str = ""

    def _break_stream(self) -> str:
        if self._streaming:
            self._streaming = False
            return "\n"
        return ""

    def render(self, event: OutputEvent) -> str:
        match event:
            case AddMessage(message=message) if message.role == Role.ASSISTANT and message.text is not None:
                prefix = self._break_stream()
                self._streaming = True
                self._printed = len(message.text)
                return prefix + format_message(message)
            case UpdateMessage(message=message) if message.text is not None:
                delta = message.text[self._printed:]
                self._printed = len(message.text)
                return delta
            case AddMessage(message=message):
                if message.role == Role.USER and message.text is not None:
                    # The operator's own input is already on screen
                    return self._break_stream()
                return self._break_stream() + format_message(message) + "\n"
            case CommandStatusEvent(statuses=statuses):
                lines = [
                    f"[command {s.id}] {'running' if s.is_active else 'finished'}: {s.command}"
                    for s in statuses
                ]
                return self._break_stream() + "\n".join(lines) + "\n"
            case HighlightFile(path=path, is_new_write=is_new_write):
                action = "created" if is_new_write else "touched"
                return self._break_stream() + f"[file {action}] {path}\n"
            case ErrorEvent(message=message):
                return self._break_stream() + f"[error] {message}\n"
            case NewTask():
                self._last_state = ""
                return self._break_stream() + "[new task]\n"
            case AgentStatus(state=state, tokens_used=used, tokens_max=limit):
                description = describe_state(state)
                if description == self._last_state or not is_pause_point(state):
                    self._last_state = description
                    return ""
                self._last_state = description
                return self._break_stream() + f"[{description}] tokens {used}/{limit}\n"
        return ""
