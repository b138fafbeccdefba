"""Workspace snapshot and system prompt assembly."""

from __future__ import annotations

import os
import platform
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path

from taskpilot.integrations.utilities.ignore import IgnoreManager

MAX_FILES = 10_000
NO_FILES = "No files found."

ENV_DETAILS_TEMPLATE = """\
<environment_details>
# Current Time
{time}

# Current Working Directory ({working_dir}) Files
{files}
</environment_details>"""

SYSTEM_PROMPT_TEMPLATE = """\
You are Taskpilot, a software engineer working autonomously inside a single \
workspace. You accomplish the user's task step by step by calling tools, one \
tool per message, and you wait for each tool result before deciding the next \
step.

## Tools

- read_file / write_to_file / replace_in_file: inspect and change files. Prefer \
replace_in_file for targeted edits to existing files.
- list_files / search_files: explore the workspace.
- execute_command / get_command_result / terminate_command: run shell commands. \
Long running commands keep running in the background; check on them by ID.
- web_fetch: fetch a web page or API response.
- ask_followup_question: ask the user when something essential is unclear.
- attempt_completion: present the final result once the task is done.

## Rules

- All relative paths are relative to the workspace directory {workspace_dir}.
- Never assume the result of a tool; wait for it.
- Each user message carries an environment_details block with the current \
time and the workspace file list. Use it instead of listing files again.
- When the task is complete, call attempt_completion. Do not end with a question.

## System Information

Operating System: {os_name}
Default Shell: {shell}
Home Directory: {home_dir}
Current Working Directory: {workspace_dir}

## User's Custom Instructions

{user_instructions}
"""


def _posix(path: str | Path) -> str:
    return str(path).replace("\\", "/")


def default_shell() -> str:
    return os.environ.get("SHELL") or os.environ.get("COMSPEC") or "/bin/sh"


def list_workspace_files(workspace: str | Path, *, limit: int = MAX_FILES) -> list[str]:
    """Relative, gitignore-filtered paths under ``workspace``, at most ``limit``."""
    root = Path(workspace)
    return [
        path.relative_to(root).as_posix()
        for path in IgnoreManager(root).walk(limit=limit)
    ]


def environment_details(workspace: str | Path, *, now: datetime | None = None) -> str:
    """Snapshot attached to every user-role message."""
    files = list_workspace_files(workspace)
    moment = now or datetime.now().astimezone()
    return ENV_DETAILS_TEMPLATE.format(
        time=format_datetime(moment),
        working_dir=_posix(workspace),
        files="\n".join(files) if files else NO_FILES,
    )


def prepare_system_prompt(workspace: str | Path, user_instructions: str = "") -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        workspace_dir=_posix(workspace),
        os_name=platform.system().lower() or "unknown",
        shell=default_shell(),
        home_dir=_posix(Path.home()),
        user_instructions=user_instructions.strip() or "None.",
    )
