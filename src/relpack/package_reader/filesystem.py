"""Filesystem access used by the package reader."""

from __future__ import annotations

import glob
import os
import stat
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """
    Read-only filesystem operations needed to resolve a package.

    Implementations must be safe for concurrent read-only use if callers resolve
    several packages in parallel.
    """

    def exists(self, path: str | Path) -> bool: ...

    def is_dir(self, path: str | Path) -> bool:
        """Stat `path`. Raises `OSError` if it cannot be stat'ed."""
        ...

    def recursive_glob(self, pattern: str) -> list[str]:
        """Expand an absolute pattern, where `**` matches any number of directories."""
        ...

    def read_text(self, path: str | Path) -> str: ...


class LocalFileSystem:
    """`FileSystem` backed by the local disk."""

    def exists(self, path: str | Path) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str | Path) -> bool:
        return stat.S_ISDIR(os.stat(path).st_mode)

    def recursive_glob(self, pattern: str) -> list[str]:
        # Hidden files are regular package inputs, so don't skip them.
        return sorted(glob.glob(pattern, recursive=True, include_hidden=True))

    def read_text(self, path: str | Path) -> str:
        return Path(path).read_text(encoding="utf-8")
