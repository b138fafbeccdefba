"""Search tools: regex search over workspace files."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import Field

from taskpilot.errors import ToolError
from taskpilot.integrations.utilities.ignore import IgnoreManager
from taskpilot.tools.base import Tool, ToolParam, ToolSpec
from taskpilot.tools.file_ops import NO_RESULTS, resolve_path

logger = logging.getLogger(__name__)

MAX_RESULTS = 300


class SearchFilesParams(ToolParam):
    path: str = Field(
        default=".",
        description="The directory to search in, relative to the workspace. Searched recursively.",
    )
    regex: str = Field(description="The regular expression pattern to search for (Python re syntax)")
    file_pattern: str | None = Field(
        default=None,
        description="Glob pattern to filter files (e.g. '*.py'). All files are searched if omitted.",
    )


async def search_files(
    params: SearchFilesParams,
    working_dir: str | Path,
    *,
    max_results: int = MAX_RESULTS,
) -> str:
    workspace = Path(working_dir)
    root = resolve_path(params.path, workspace)
    logger.info("Search for path '%s' and regex %s", root, params.regex)
    try:
        regex = re.compile(params.regex)
    except re.error as e:
        raise ToolError(f"Invalid regex pattern: {e}", tool_name="search_files") from e
    if not root.exists():
        raise ToolError(f"Path not found: {root}", tool_name="search_files")

    files = [root] if root.is_file() else IgnoreManager(root).walk()
    matches: list[str] = []
    for file in files:
        if not file.is_file():
            continue
        if params.file_pattern and not file.match(params.file_pattern):
            continue
        try:
            content = file.read_text(encoding="utf-8", errors="strict")
        except (UnicodeDecodeError, OSError):
            continue
        if "\x00" in content:
            continue

        try:
            display = file.relative_to(workspace).as_posix()
        except ValueError:
            display = file.as_posix()
        for i, line in enumerate(content.splitlines(), 1):
            if regex.search(line):
                matches.append(f"{display}:{i}: {line.strip()}")
                if len(matches) >= max_results:
                    break
        if len(matches) >= max_results:
            break

    if not matches:
        return NO_RESULTS
    result = "\n".join(matches)
    if len(matches) >= max_results:
        result += f"\n... (limited to {max_results} results)"
    return result


def create_search_tools(working_dir: str | Path) -> list[Tool]:
    async def _search(params: SearchFilesParams) -> str:
        return await search_files(params, working_dir)

    return [
        Tool(
            spec=ToolSpec.from_params(
                "search_files",
                "Perform a regex search across files in a directory. Each match is "
                "reported as path:line: text.",
                SearchFilesParams,
            ),
            params=SearchFilesParams,
            execute=_search,
            tags=["search"],
        ),
    ]
