"""Tests for conversation message types."""

from __future__ import annotations

import pytest

from taskpilot.types.messages import (
    Message,
    Role,
    TextContent,
    ToolCallContent,
    ToolResultContent,
)


class TestConstructors:
    def test_user(self) -> None:
        m = Message.user("hi")
        assert m.role == Role.USER
        assert m.content == TextContent("hi")
        assert m.text == "hi"
        assert m.metadata is None

    def test_tool_call_is_assistant(self) -> None:
        m = Message.tool_call(ToolCallContent(id="c1", name="read_file"))
        assert m.role == Role.ASSISTANT
        assert m.is_tool_call
        assert m.text is None

    def test_tool_result_is_user(self) -> None:
        m = Message.tool_result("c1", "payload")
        assert m.role == Role.USER
        assert m.is_tool_result
        assert m.content == ToolResultContent(id="c1", payload="payload")


class TestEnvironment:
    def test_absent_by_default(self) -> None:
        assert Message.user("hi").environment is None

    def test_attach(self) -> None:
        m = Message.user("hi")
        assert m.with_environment("<env/>") is m
        assert m.environment == "<env/>"
        assert m.metadata == {"environment": "<env/>"}


class TestSerialization:
    def test_text(self) -> None:
        assert Message.assistant("hello").to_dict() == {
            "role": "assistant",
            "content": {"type": "text", "text": "hello"},
        }

    def test_tool_result_with_environment(self) -> None:
        data = Message.tool_result("c1", "ok").with_environment("<env/>").to_dict()
        assert data == {
            "role": "user",
            "content": {"type": "tool_result", "id": "c1", "payload": "ok"},
            "metadata": {"environment": "<env/>"},
        }

    def test_from_dict_tool_call(self) -> None:
        m = Message.from_dict({
            "role": "assistant",
            "content": {"type": "tool_call", "id": "c1", "name": "list_files", "arguments": {"path": "."}},
        })
        assert m == Message.tool_call(ToolCallContent(id="c1", name="list_files", arguments={"path": "."}))

    def test_from_dict_missing_arguments(self) -> None:
        m = Message.from_dict({
            "role": "assistant",
            "content": {"type": "tool_call", "id": "c1", "name": "list_files"},
        })
        assert m.content.arguments == {}

    def test_unknown_content_type(self) -> None:
        with pytest.raises(ValueError, match="Unknown message content type"):
            Message.from_dict({"role": "user", "content": {"type": "image"}})

    def test_unknown_role(self) -> None:
        with pytest.raises(ValueError):
            Message.from_dict({"role": "system", "content": {"type": "text", "text": "x"}})
