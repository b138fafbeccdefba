"""Patches reported back to the model after a file edit."""

from __future__ import annotations

import difflib
from itertools import islice


def create_patch(old: str, new: str, *, context_lines: int = 3) -> str:
    """Hunks turning ``old`` into ``new``, without the ``---``/``+++`` file headers.

    The edited path is already part of the tool result, so only the hunks are
    returned. Empty when nothing changed. A final line lacking a newline still
    ends its own patch line.
    """
    diff = difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        n=context_lines,
    )
    return "".join(
        line if line.endswith("\n") else line + "\n"
        for line in islice(diff, 2, None)
    )
