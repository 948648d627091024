"""
PackageDirReader: main entry point for package resolution.

Turns a package directory (a `spec`, a mandatory `packaging` script, an optional
`pre_packaging` script) plus the `files` / `excluded_files` globs into a sorted,
deduplicated file list, and hands it to an `Archiver` to get a fingerprint.
"""

from __future__ import annotations

import logging
from pathlib import Path

from relpack.archive import Archiver
from relpack.package_reader.errors import (
    FileSystemError,
    MissingBuildScriptError,
    NamingCollisionError,
)
from relpack.package_reader.filesystem import FileSystem, LocalFileSystem
from relpack.package_reader.manifest import ManifestSource, YamlManifestSource
from relpack.package_reader.patterns import PatternMatcher
from relpack.package_reader.types import File, Manifest, Package, Resource

log = logging.getLogger(__name__)

SPEC_FILE_NAME = "spec"
PACKAGING_FILE_NAME = "packaging"
PRE_PACKAGING_FILE_NAME = "pre_packaging"

SPECIAL_FILE_NAMES = (PACKAGING_FILE_NAME, PRE_PACKAGING_FILE_NAME)


class PackageDirReader:
    """
    Resolves package directories against a source root and a blobs root.

    For each `files` pattern, in declared order, matches under `src_dir` are taken
    before matches under `blobs_dir`, and a relative path already selected is never
    replaced. So a source file shadows a blob of the same name, and an earlier
    pattern shadows a later one. `excluded_files` matches (under either root) are
    then removed by relative path.

    Each `read()` is self-contained, so one reader may serve concurrent calls as
    long as its `FileSystem` does.
    """

    def __init__(
        self,
        archiver: Archiver,
        src_dir: str | Path,
        blobs_dir: str | Path,
        fs: FileSystem | None = None,
        manifest_source: ManifestSource | None = None,
    ) -> None:
        self._archiver = archiver
        self._src_dir = Path(src_dir)
        self._blobs_dir = Path(blobs_dir)
        self._fs: FileSystem = fs if fs is not None else LocalFileSystem()
        self._manifest_source: ManifestSource = (
            manifest_source if manifest_source is not None else YamlManifestSource(self._fs)
        )
        self._matcher = PatternMatcher(self._fs)

    @property
    def roots(self) -> tuple[Path, Path]:
        """Candidate roots in precedence order."""
        return (self._src_dir, self._blobs_dir)

    def read(self, path: str | Path) -> Package:
        """
        Resolve the package at `path` into a `Package`.

        Raises:
            ManifestError: The `spec` file is unreadable or malformed.
            MissingBuildScriptError: `packaging` is missing or not a file.
            FileSystemError: A glob or stat failed.
            NamingCollisionError: A special file name was selected by `files`.
        """
        manifest, files, prep_files = self.collect_files(path)

        # The spec file itself is not part of the inputs; dependencies are
        # passed separately and become part of the fingerprint.
        archive = self._archiver.create(files, prep_files, list(manifest.dependencies))
        fingerprint = archive.fingerprint()
        log.info("Package %s has fingerprint %s", manifest.name, fingerprint)

        resource = Resource(name=manifest.name, fingerprint=fingerprint, archive=archive)
        return Package(resource=resource, dependencies=tuple(manifest.dependencies))

    def collect_files(self, path: str | Path) -> tuple[Manifest, list[File], list[File]]:
        """
        Return the manifest, the full ordered file list, and the pre-packaging subset.

        The list starts with `packaging`, then `pre_packaging` if present, then
        the glob-selected files sorted by relative path.
        """
        package_dir = Path(path)
        manifest = self._manifest_source.parse(package_dir / SPEC_FILE_NAME)

        packaging_path = package_dir / PACKAGING_FILE_NAME
        packaging = self._find_special_file(packaging_path, package_dir, manifest.name)
        if packaging is None:
            raise MissingBuildScriptError(manifest.name, str(packaging_path))

        # Packages may omit pre_packaging.
        pre_packaging = self._find_special_file(
            package_dir / PRE_PACKAGING_FILE_NAME, package_dir, manifest.name
        )
        prep_files = [pre_packaging] if pre_packaging is not None else []

        files_by_rel_path = self._apply_files_patterns(manifest)
        for rel_path in self._apply_excluded_files_patterns(manifest):
            files_by_rel_path.pop(rel_path, None)

        for special_name in SPECIAL_FILE_NAMES:
            if special_name in files_by_rel_path:
                raise NamingCollisionError(manifest.name, special_name)

        files = [packaging, *prep_files]
        files.extend(files_by_rel_path[key] for key in sorted(files_by_rel_path))
        return manifest, files, prep_files

    def _find_special_file(self, special_path: Path, package_dir: Path, name: str) -> File | None:
        """Locate a special script. `None` means not found; a directory is an error."""
        if not self._fs.exists(special_path):
            return None

        try:
            is_dir = self._fs.is_dir(special_path)
        except OSError as e:
            raise FileSystemError(f"Checking '{special_path}' for package '{name}': {e}") from e

        if is_dir:
            if special_path.name == PACKAGING_FILE_NAME:
                raise MissingBuildScriptError(
                    name, str(special_path), reason="Expected a file, found a directory at"
                )
            raise FileSystemError(
                f"Expected '{special_path}' for package '{name}' to be a file, found a directory"
            )

        return File.from_path(special_path, package_dir, exclude_mode=True)

    def _apply_files_patterns(self, manifest: Manifest) -> dict[str, File]:
        files_by_rel_path: dict[str, File] = {}
        for pattern in manifest.files:
            for root in self.roots:
                for file in self._matcher.match(pattern, root):
                    if file.relative_path not in files_by_rel_path:
                        files_by_rel_path[file.relative_path] = file
        return files_by_rel_path

    def _apply_excluded_files_patterns(self, manifest: Manifest) -> list[str]:
        excluded: list[str] = []
        for pattern in manifest.excluded_files:
            for root in self.roots:
                excluded.extend(
                    file.relative_path
                    for file in self._matcher.match(pattern, root, skip_dirs=False)
                )
        return excluded
