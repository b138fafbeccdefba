"""File operation tools: read, write, replace, list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field

from taskpilot.errors import ToolError
from taskpilot.integrations.utilities.diff_utils import create_patch
from taskpilot.integrations.utilities.ignore import IgnoreManager
from taskpilot.tools.base import Tool, ToolParam, ToolSpec

logger = logging.getLogger(__name__)

UPDATED_CONTENT_PREFIX = "The user made the following updates to your content:\n\n"
NO_RESULTS = "No results found"

SEARCH_MARKER = "<<<<<<< SEARCH"
DIVIDER_MARKER = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"


class ReadFileParams(ToolParam):
    path: str = Field(description="The path of the file to read, relative to the workspace")


class WriteToFileParams(ToolParam):
    path: str = Field(description="The path of the file to write, relative to the workspace")
    content: str = Field(description="The complete content to write to the file")


class ReplaceInFileParams(ToolParam):
    path: str = Field(description="The path of the file to modify, relative to the workspace")
    diff: str = Field(
        description=(
            "One or more SEARCH/REPLACE blocks:\n"
            f"{SEARCH_MARKER}\n[exact content to find]\n{DIVIDER_MARKER}\n"
            f"[new content to replace with]\n{REPLACE_MARKER}\n"
            "Each block replaces only the first match."
        ),
    )


class ListFilesParams(ToolParam):
    path: str = Field(default=".", description="The directory to list, relative to the workspace")
    max_depth: int = Field(default=1, ge=1, description="Max depth to list files (default: 1)")


class SearchNotFound(ToolError):
    """A SEARCH block did not match the file content."""

    def __init__(self, search: str) -> None:
        super().__init__(f"Search string not found: {search}", tool_name="replace_in_file")
        self.search = search


@dataclass(frozen=True, slots=True)
class ReplaceBlock:
    search: str
    replace: str


def resolve_path(path: str, working_dir: str | Path) -> Path:
    p = Path(path)
    if not p.is_absolute():
        p = Path(working_dir) / p
    return p


def parse_replace_diff(diff: str) -> list[ReplaceBlock]:
    """Split SEARCH/REPLACE blocks; each captured line keeps its newline."""
    blocks: list[ReplaceBlock] = []
    search: list[str] = []
    replace: list[str] = []
    in_search = in_replace = False
    for line in diff.splitlines():
        if line == SEARCH_MARKER:
            in_search, in_replace = True, False
        elif in_search and line == DIVIDER_MARKER:
            in_search, in_replace = False, True
        elif line == REPLACE_MARKER:
            in_search = in_replace = False
            blocks.append(ReplaceBlock("".join(search), "".join(replace)))
            search, replace = [], []
        elif in_search:
            search.append(line + "\n")
        elif in_replace:
            replace.append(line + "\n")
    return blocks


def apply_replace_blocks(content: str, blocks: list[ReplaceBlock]) -> str:
    for block in blocks:
        start = content.find(block.search)
        if start < 0:
            raise SearchNotFound(block.search)
        content = content[:start] + block.replace + content[start + len(block.search):]
    return content


async def read_file(params: ReadFileParams, working_dir: str | Path) -> str:
    path = resolve_path(params.path, working_dir)
    logger.info("Read file '%s'", path)
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ToolError(f"Error reading file: {e}", tool_name="read_file") from e


async def write_to_file(params: WriteToFileParams, working_dir: str | Path) -> str:
    path = resolve_path(params.path, working_dir)
    logger.info("Write to file '%s'", path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(params.content, encoding="utf-8")
    except OSError as e:
        raise ToolError(f"Error writing file: {e}", tool_name="write_to_file") from e
    return UPDATED_CONTENT_PREFIX + create_patch("", params.content)


async def replace_in_file(params: ReplaceInFileParams, working_dir: str | Path) -> str:
    path = resolve_path(params.path, working_dir)
    logger.info("Replace in file '%s'", path)
    blocks = parse_replace_diff(params.diff)
    try:
        original = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ToolError(f"Replace in file error: {e}", tool_name="replace_in_file") from e
    modified = apply_replace_blocks(original, blocks)
    try:
        path.write_text(modified, encoding="utf-8")
    except OSError as e:
        raise ToolError(f"Replace in file error: {e}", tool_name="replace_in_file") from e
    return UPDATED_CONTENT_PREFIX + create_patch(original, modified)


async def list_files(params: ListFilesParams, working_dir: str | Path) -> str:
    path = resolve_path(params.path, working_dir)
    logger.info("List files '%s' (depth %d)", path, params.max_depth)
    if not path.is_dir():
        raise ToolError(f"Not a directory: {path}", tool_name="list_files")
    ignore = IgnoreManager(path)
    entries = [
        entry.relative_to(path).as_posix()
        for entry in ignore.walk(max_depth=params.max_depth)
    ]
    return "\n".join(entries) if entries else NO_RESULTS


def create_file_tools(working_dir: str | Path) -> list[Tool]:
    async def _read(params: ReadFileParams) -> str:
        return await read_file(params, working_dir)

    async def _write(params: WriteToFileParams) -> str:
        return await write_to_file(params, working_dir)

    async def _replace(params: ReplaceInFileParams) -> str:
        return await replace_in_file(params, working_dir)

    async def _list(params: ListFilesParams) -> str:
        return await list_files(params, working_dir)

    return [
        Tool(
            spec=ToolSpec.from_params(
                "read_file",
                "Read the contents of a file at the specified path.",
                ReadFileParams,
            ),
            params=ReadFileParams,
            execute=_read,
            tags=["file", "read"],
        ),
        Tool(
            spec=ToolSpec.from_params(
                "write_to_file",
                "Write content to a file. The file is overwritten if it exists and "
                "created, along with any missing directories, if it does not.",
                WriteToFileParams,
                requires_approval=True,
            ),
            params=WriteToFileParams,
            execute=_write,
            tags=["file", "write"],
        ),
        Tool(
            spec=ToolSpec.from_params(
                "replace_in_file",
                "Replace sections of an existing file using SEARCH/REPLACE blocks that "
                "define exact changes to specific parts of the file.",
                ReplaceInFileParams,
                requires_approval=True,
            ),
            params=ReplaceInFileParams,
            execute=_replace,
            tags=["file", "edit"],
        ),
        Tool(
            spec=ToolSpec.from_params(
                "list_files",
                "List files and directories within the specified directory. With max_depth 1 "
                "only the top-level contents are listed.",
                ListFilesParams,
            ),
            params=ListFilesParams,
            execute=_list,
            tags=["file", "list"],
        ),
    ]
