"""Gitignore-compatible workspace walking using pathspec."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pathspec

ALWAYS_IGNORED = (
    ".git/",
    "node_modules/",
    "__pycache__/",
    ".venv/",
    "*.pyc",
    ".DS_Store",
)


class IgnoreManager:
    """Manages .gitignore-style path filtering for one workspace root.

    Paths handed to ``is_ignored`` are relative to the root. Directory paths
    should end with ``/`` so directory-only patterns match.
    """

    def __init__(self, root: str | Path = ".") -> None:
        self._root = Path(root)
        self._spec: pathspec.PathSpec | None = None
        self._load()

    def _load(self) -> None:
        patterns: list[str] = list(ALWAYS_IGNORED)

        gitignore = self._root / ".gitignore"
        if gitignore.is_file():
            try:
                text = gitignore.read_text(encoding="utf-8", errors="replace")
                for line in text.splitlines():
                    line = line.strip()
                    if line and not line.startswith("#"):
                        patterns.append(line)
            except OSError:
                pass

        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def is_ignored(self, path: str | Path) -> bool:
        if self._spec is None:
            return False
        # pathspec expects forward slashes
        rel = str(path).replace("\\", "/")
        return self._spec.match_file(rel)

    def walk(
        self,
        start: str | Path | None = None,
        *,
        max_depth: int | None = None,
        limit: int | None = None,
    ) -> Iterator[Path]:
        """Yield non-ignored files and directories under ``start``.

        Each directory's entries are yielded sorted by name before its
        subdirectories are visited. Depth 1 lists only direct children.
        """
        base = Path(start) if start is not None else self._root
        yielded = 0
        stack: list[tuple[Path, int]] = [(base, 1)]
        while stack:
            directory, depth = stack.pop()
            try:
                entries = sorted(os.scandir(directory), key=lambda e: e.name)
            except OSError:
                continue
            children: list[tuple[Path, int]] = []
            for entry in entries:
                path = Path(entry.path)
                is_dir = entry.is_dir(follow_symlinks=False)
                if self.is_ignored(self._relative(path, is_dir)):
                    continue
                yield path
                yielded += 1
                if limit is not None and yielded >= limit:
                    return
                if is_dir and (max_depth is None or depth < max_depth):
                    children.append((path, depth + 1))
            stack.extend(reversed(children))

    def _relative(self, path: Path, is_dir: bool) -> str:
        try:
            rel = path.relative_to(self._root).as_posix()
        except ValueError:
            rel = path.name
        return f"{rel}/" if is_dir else rel

    def reload(self) -> None:
        """Reload patterns from disk."""
        self._load()
