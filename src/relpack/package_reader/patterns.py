"""Glob expansion of `files` / `excluded_files` patterns against a root directory."""

from __future__ import annotations

import glob
import logging
import os
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from relpack.package_reader.errors import FileSystemError
from relpack.package_reader.filesystem import FileSystem
from relpack.package_reader.types import File

log = logging.getLogger(__name__)


class PatternMatcher:
    """
    Expands a pattern under a root and yields `File` records relative to that root.

    Directory matches are skipped by default: a directory is never selected as an
    entry, only the files that further expansion reaches inside it.
    """

    def __init__(self, fs: FileSystem) -> None:
        self._fs = fs

    def match(self, pattern: str, root: str | Path, skip_dirs: bool = True) -> Iterator[File]:
        full_pattern = os.path.join(glob.escape(str(root)), pattern.lstrip("/"))
        try:
            matches = self._fs.recursive_glob(full_pattern)
        except OSError as e:
            raise FileSystemError(f"Listing files for pattern '{pattern}' in '{root}': {e}") from e
        log.debug("Pattern %r in %s matched %d paths", pattern, root, len(matches))

        for path in matches:
            file = File.from_path(path, root)
            if ".." in PurePosixPath(file.relative_path).parts:
                raise FileSystemError(
                    f"Pattern '{pattern}' matched '{path}', which is outside '{root}'"
                )
            if skip_dirs and self._is_dir(path):
                continue
            yield file

    def _is_dir(self, path: str) -> bool:
        try:
            return self._fs.is_dir(path)
        except OSError as e:
            raise FileSystemError(f"Checking file type of '{path}': {e}") from e
