"""Value types produced and consumed while reading a package directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relpack.archive import Archive


@dataclass(frozen=True)
class Manifest:
    """
    Parsed package `spec` document.

    `files` order matters: earlier patterns win when two patterns select the
    same relative path. `excluded_files` order does not matter.
    """

    name: str
    files: list[str] = field(default_factory=list)
    excluded_files: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class File:
    """
    A file selected for a package, identified by its path relative to the root
    it was found under. `exclude_mode` is set only for the special build scripts,
    whose permission bits are left out of the fingerprint.
    """

    path: Path
    root: Path
    relative_path: str
    exclude_mode: bool = False

    @classmethod
    def from_path(cls, path: str | Path, root: str | Path, exclude_mode: bool = False) -> File:
        path = Path(path)
        root = Path(root)
        return cls(
            path=path,
            root=root,
            relative_path=path.relative_to(root).as_posix(),
            exclude_mode=exclude_mode,
        )


@dataclass(frozen=True)
class Resource:
    """Content-addressed identity of a package: name, fingerprint and its archive."""

    name: str
    fingerprint: str
    archive: Archive = field(repr=False, compare=False)


@dataclass(frozen=True)
class Package:
    """A resolved package ready for the release-level dependency graph."""

    resource: Resource
    dependencies: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.resource.name

    @property
    def fingerprint(self) -> str:
        return self.resource.fingerprint
