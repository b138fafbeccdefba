"""Tests for the regex search tool."""

from __future__ import annotations

import pytest

from taskpilot.errors import ToolError
from taskpilot.tools.file_ops import NO_RESULTS
from taskpilot.tools.search import SearchFilesParams, search_files


@pytest.fixture
def project(tmp_workdir):
    (tmp_workdir / "src").mkdir()
    (tmp_workdir / "src" / "app.py").write_text("import os\n\ndef main():\n    return os.getcwd()\n")
    (tmp_workdir / "src" / "util.js").write_text("function main() {}\n")
    (tmp_workdir / "README.md").write_text("# Project\nRun main to start.\n")
    return tmp_workdir


class TestSearchFiles:
    @pytest.mark.asyncio
    async def test_reports_path_line_and_text(self, project) -> None:
        result = await search_files(SearchFilesParams(regex=r"def main"), project)
        assert result == "src/app.py:3: def main():"

    @pytest.mark.asyncio
    async def test_matches_across_files(self, project) -> None:
        result = await search_files(SearchFilesParams(regex="main"), project)
        lines = result.splitlines()
        assert "README.md:2: Run main to start." in lines
        assert "src/app.py:3: def main():" in lines
        assert "src/util.js:1: function main() {}" in lines

    @pytest.mark.asyncio
    async def test_file_pattern_filter(self, project) -> None:
        result = await search_files(SearchFilesParams(regex="main", file_pattern="*.js"), project)
        assert result == "src/util.js:1: function main() {}"

    @pytest.mark.asyncio
    async def test_subdirectory_paths_stay_workspace_relative(self, project) -> None:
        result = await search_files(SearchFilesParams(path="src", regex="getcwd"), project)
        assert result == "src/app.py:4: return os.getcwd()"

    @pytest.mark.asyncio
    async def test_single_file_path(self, project) -> None:
        result = await search_files(SearchFilesParams(path="README.md", regex="Project"), project)
        assert result == "README.md:1: # Project"

    @pytest.mark.asyncio
    async def test_no_matches(self, project) -> None:
        assert await search_files(SearchFilesParams(regex="nothing_here"), project) == NO_RESULTS

    @pytest.mark.asyncio
    async def test_skips_binary_files(self, project) -> None:
        (project / "blob.bin").write_bytes(b"main\x00\xff\xfe")
        result = await search_files(SearchFilesParams(regex="main"), project)
        assert "blob.bin" not in result

    @pytest.mark.asyncio
    async def test_skips_ignored_files(self, project) -> None:
        (project / ".gitignore").write_text("README.md\n")
        result = await search_files(SearchFilesParams(regex="main"), project)
        assert "README.md" not in result

    @pytest.mark.asyncio
    async def test_result_limit(self, tmp_workdir) -> None:
        (tmp_workdir / "many.txt").write_text("hit\n" * 10)
        result = await search_files(SearchFilesParams(regex="hit"), tmp_workdir, max_results=3)
        lines = result.splitlines()
        assert lines[:3] == ["many.txt:1: hit", "many.txt:2: hit", "many.txt:3: hit"]
        assert lines[-1] == "... (limited to 3 results)"

    @pytest.mark.asyncio
    async def test_invalid_regex(self, project) -> None:
        with pytest.raises(ToolError, match="Invalid regex pattern"):
            await search_files(SearchFilesParams(regex="("), project)

    @pytest.mark.asyncio
    async def test_missing_path(self, project) -> None:
        with pytest.raises(ToolError, match="Path not found"):
            await search_files(SearchFilesParams(path="nope", regex="x"), project)
