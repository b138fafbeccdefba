"""Tests for file operation tools."""

from __future__ import annotations

import pytest

from taskpilot.errors import ToolError
from taskpilot.tools.file_ops import (
    NO_RESULTS,
    UPDATED_CONTENT_PREFIX,
    ListFilesParams,
    ReadFileParams,
    ReplaceBlock,
    ReplaceInFileParams,
    SearchNotFound,
    WriteToFileParams,
    apply_replace_blocks,
    create_file_tools,
    list_files,
    parse_replace_diff,
    read_file,
    replace_in_file,
    write_to_file,
)


def _diff(*blocks: tuple[str, str]) -> str:
    parts = []
    for search, replace in blocks:
        parts.append(f"<<<<<<< SEARCH\n{search}=======\n{replace}>>>>>>> REPLACE\n")
    return "".join(parts)


class TestReadFile:
    @pytest.mark.asyncio
    async def test_reads_relative_path(self, tmp_workdir) -> None:
        (tmp_workdir / "a.txt").write_text("hello\nworld\n")
        result = await read_file(ReadFileParams(path="a.txt"), tmp_workdir)
        assert result == "hello\nworld\n"

    @pytest.mark.asyncio
    async def test_reads_absolute_path(self, tmp_workdir, tmp_path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("x")
        assert await read_file(ReadFileParams(path=str(outside)), tmp_workdir) == "x"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_workdir) -> None:
        with pytest.raises(ToolError, match="Error reading file"):
            await read_file(ReadFileParams(path="missing.txt"), tmp_workdir)


class TestWriteToFile:
    @pytest.mark.asyncio
    async def test_creates_parents_and_returns_patch(self, tmp_workdir) -> None:
        result = await write_to_file(
            WriteToFileParams(path="src/new/a.py", content="x = 1\ny = 2\n"), tmp_workdir,
        )
        assert (tmp_workdir / "src" / "new" / "a.py").read_text() == "x = 1\ny = 2\n"
        assert result.startswith(UPDATED_CONTENT_PREFIX)
        assert "+x = 1\n+y = 2\n" in result

    @pytest.mark.asyncio
    async def test_overwrites(self, tmp_workdir) -> None:
        (tmp_workdir / "a.txt").write_text("old")
        await write_to_file(WriteToFileParams(path="a.txt", content="new"), tmp_workdir)
        assert (tmp_workdir / "a.txt").read_text() == "new"

    @pytest.mark.asyncio
    async def test_write_into_file_path_fails(self, tmp_workdir) -> None:
        (tmp_workdir / "blocker").write_text("")
        with pytest.raises(ToolError, match="Error writing file"):
            await write_to_file(WriteToFileParams(path="blocker/a.txt", content="x"), tmp_workdir)


class TestParseReplaceDiff:
    def test_single_block(self) -> None:
        blocks = parse_replace_diff(_diff(("old line\n", "new line\n")))
        assert blocks == [ReplaceBlock("old line\n", "new line\n")]

    def test_multiple_blocks(self) -> None:
        blocks = parse_replace_diff(_diff(("a\n", "b\n"), ("c\nd\n", "")))
        assert blocks == [ReplaceBlock("a\n", "b\n"), ReplaceBlock("c\nd\n", "")]

    def test_text_outside_blocks_ignored(self) -> None:
        diff = "Here are the changes:\n" + _diff(("a\n", "b\n")) + "done\n"
        assert parse_replace_diff(diff) == [ReplaceBlock("a\n", "b\n")]

    def test_unterminated_block_dropped(self) -> None:
        assert parse_replace_diff("<<<<<<< SEARCH\na\n=======\nb\n") == []


class TestApplyReplaceBlocks:
    def test_replaces_first_match_only(self) -> None:
        result = apply_replace_blocks("x\nx\n", [ReplaceBlock("x\n", "y\n")])
        assert result == "y\nx\n"

    def test_blocks_apply_in_sequence(self) -> None:
        blocks = [ReplaceBlock("a\n", "b\n"), ReplaceBlock("b\n", "c\n")]
        assert apply_replace_blocks("a\n", blocks) == "c\n"

    def test_missing_search_raises(self) -> None:
        with pytest.raises(SearchNotFound) as exc_info:
            apply_replace_blocks("abc\n", [ReplaceBlock("zzz\n", "")])
        assert exc_info.value.search == "zzz\n"
        assert str(exc_info.value) == "Search string not found: zzz\n"


class TestReplaceInFile:
    @pytest.mark.asyncio
    async def test_replace(self, tmp_workdir) -> None:
        target = tmp_workdir / "main.py"
        target.write_text("def f():\n    return 1\n")
        result = await replace_in_file(
            ReplaceInFileParams(path="main.py", diff=_diff(("    return 1\n", "    return 2\n"))),
            tmp_workdir,
        )
        assert target.read_text() == "def f():\n    return 2\n"
        assert result.startswith(UPDATED_CONTENT_PREFIX)
        assert "-    return 1\n" in result
        assert "+    return 2\n" in result

    @pytest.mark.asyncio
    async def test_no_match_leaves_file_untouched(self, tmp_workdir) -> None:
        target = tmp_workdir / "main.py"
        target.write_text("content\n")
        with pytest.raises(SearchNotFound):
            await replace_in_file(
                ReplaceInFileParams(path="main.py", diff=_diff(("other\n", "x\n"))), tmp_workdir,
            )
        assert target.read_text() == "content\n"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_workdir) -> None:
        with pytest.raises(ToolError, match="Replace in file error"):
            await replace_in_file(
                ReplaceInFileParams(path="missing.py", diff=_diff(("a\n", "b\n"))), tmp_workdir,
            )


class TestListFiles:
    @pytest.mark.asyncio
    async def test_top_level_only_by_default(self, tmp_workdir) -> None:
        (tmp_workdir / "sub").mkdir()
        (tmp_workdir / "sub" / "inner.txt").write_text("")
        (tmp_workdir / "a.txt").write_text("")
        result = await list_files(ListFilesParams(), tmp_workdir)
        assert result.splitlines() == ["a.txt", "sub"]

    @pytest.mark.asyncio
    async def test_deeper_listing(self, tmp_workdir) -> None:
        (tmp_workdir / "sub").mkdir()
        (tmp_workdir / "sub" / "inner.txt").write_text("")
        result = await list_files(ListFilesParams(max_depth=2), tmp_workdir)
        assert result.splitlines() == ["sub", "sub/inner.txt"]

    @pytest.mark.asyncio
    async def test_respects_gitignore(self, tmp_workdir) -> None:
        (tmp_workdir / ".gitignore").write_text("*.log\n")
        (tmp_workdir / "debug.log").write_text("")
        (tmp_workdir / "keep.txt").write_text("")
        result = await list_files(ListFilesParams(), tmp_workdir)
        assert "debug.log" not in result
        assert "keep.txt" in result

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_workdir) -> None:
        assert await list_files(ListFilesParams(), tmp_workdir) == NO_RESULTS

    @pytest.mark.asyncio
    async def test_not_a_directory(self, tmp_workdir) -> None:
        (tmp_workdir / "a.txt").write_text("")
        with pytest.raises(ToolError, match="Not a directory"):
            await list_files(ListFilesParams(path="a.txt"), tmp_workdir)


class TestCreateFileTools:
    def test_tool_set(self, tmp_workdir) -> None:
        tools = {tool.name: tool for tool in create_file_tools(tmp_workdir)}
        assert set(tools) == {"read_file", "write_to_file", "replace_in_file", "list_files"}
        assert tools["write_to_file"].requires_approval is True
        assert tools["replace_in_file"].requires_approval is True
        assert tools["read_file"].requires_approval is False
        assert tools["read_file"].spec.parameters["required"] == ["path"]

    @pytest.mark.asyncio
    async def test_tools_are_bound_to_working_dir(self, tmp_workdir) -> None:
        (tmp_workdir / "a.txt").write_text("bound")
        tools = {tool.name: tool for tool in create_file_tools(tmp_workdir)}
        read = tools["read_file"]
        assert await read.execute(read.validate({"path": "a.txt"})) == "bound"
