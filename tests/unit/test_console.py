"""Tests for console input parsing and output rendering."""

from __future__ import annotations

from taskpilot.console import QUIT, SHOW_HELP, ConsoleRenderer, format_message, parse_line
from taskpilot.types.agent import Paused, Thinking, ToolCall, WaitingUserPrompt
from taskpilot.types.events import (
    AddMessage,
    AgentStatus,
    CancelTask,
    CommandStatus,
    CommandStatusEvent,
    ConfirmDecision,
    ConfirmTool,
    ErrorEvent,
    HighlightFile,
    NewTask,
    SendMessage,
    TerminalData,
    UpdateMessage,
)
from taskpilot.types.messages import Message, ToolCallContent


class TestParseLine:
    def test_plain_text(self) -> None:
        assert parse_line("fix the tests\n") == SendMessage("fix the tests")

    def test_blank(self) -> None:
        assert parse_line("   \n") is None

    def test_commands(self) -> None:
        assert parse_line("/cancel") == CancelTask()
        assert parse_line("/new") == NewTask()
        assert parse_line("/approve") == ConfirmTool(ConfirmDecision.APPROVE)
        assert parse_line("/always") == ConfirmTool(ConfirmDecision.ALWAYS_APPROVE)
        assert parse_line("/deny") == ConfirmTool(ConfirmDecision.DENY)

    def test_quit_and_help(self) -> None:
        assert parse_line("/quit\n") is QUIT
        assert parse_line("/help") is SHOW_HELP

    def test_terminal_data(self) -> None:
        assert parse_line("/term 3 yes please\n") == TerminalData(3, b"yes please\n")

    def test_terminal_data_bad_id(self) -> None:
        assert parse_line("/term abc hello") is SHOW_HELP

    def test_command_with_trailing_text_is_a_message(self) -> None:
        assert parse_line("/new idea for the parser") == SendMessage("/new idea for the parser")


class TestFormatMessage:
    def test_text(self) -> None:
        assert format_message(Message.user("hi")) == "you: hi"
        assert format_message(Message.assistant("hello")) == "assistant: hello"

    def test_tool_call(self) -> None:
        call = ToolCallContent(id="c1", name="read_file", arguments={"path": "a.txt"})
        assert format_message(Message.tool_call(call)) == "[tool] read_file(path='a.txt')"

    def test_long_result_is_previewed(self) -> None:
        payload = "\n".join(f"line {i}" for i in range(20))
        text = format_message(Message.tool_result("c1", payload))
        assert text.startswith("[result c1]\nline 0\n")
        assert text.endswith("... (12 more lines)")


class TestConsoleRenderer:
    def test_streams_assistant_text(self) -> None:
        renderer = ConsoleRenderer()
        assert renderer.render(AddMessage(Message.assistant("Hel"))) == "assistant: Hel"
        assert renderer.render(UpdateMessage(Message.assistant("Hello"))) == "lo"
        assert renderer.render(UpdateMessage(Message.assistant("Hello!"))) == "!"

    def test_next_event_breaks_stream_line(self) -> None:
        renderer = ConsoleRenderer()
        renderer.render(AddMessage(Message.assistant("done")))
        assert renderer.render(ErrorEvent("boom")) == "\n[error] boom\n"

    def test_user_text_not_echoed(self) -> None:
        assert ConsoleRenderer().render(AddMessage(Message.user("hi"))) == ""

    def test_tool_call_rendered(self) -> None:
        call = ToolCallContent(id="c1", name="list_files")
        assert ConsoleRenderer().render(AddMessage(Message.tool_call(call))) == "[tool] list_files()\n"

    def test_command_status(self) -> None:
        event = CommandStatusEvent((CommandStatus(id=2, command="make", output="", is_active=False),))
        assert ConsoleRenderer().render(event) == "[command 2] finished: make\n"

    def test_highlight(self) -> None:
        renderer = ConsoleRenderer()
        assert renderer.render(HighlightFile("a.py", is_new_write=True)) == "[file created] a.py\n"
        assert renderer.render(HighlightFile("a.py")) == "[file touched] a.py\n"

    def test_status_only_at_pause_points(self) -> None:
        renderer = ConsoleRenderer()
        assert renderer.render(AgentStatus(state=Thinking())) == ""
        assert renderer.render(AgentStatus(tokens_used=5, tokens_max=100, state=WaitingUserPrompt())) == (
            "[waiting user prompt] tokens 5/100\n"
        )
        assert renderer.render(AgentStatus(tokens_used=6, tokens_max=100, state=WaitingUserPrompt())) == ""

    def test_confirmation_prompt_status(self) -> None:
        call = ToolCallContent(id="c1", name="write_to_file")
        text = ConsoleRenderer().render(AgentStatus(state=ToolCall(call, needs_confirmation=True)))
        assert text == "[awaiting confirmation for write_to_file] tokens 0/0\n"

    def test_new_task_resets_status(self) -> None:
        renderer = ConsoleRenderer()
        renderer.render(AgentStatus(state=Paused()))
        assert renderer.render(NewTask()) == "[new task]\n"
        assert renderer.render(AgentStatus(state=Paused())) == "[paused] tokens 0/0\n"
