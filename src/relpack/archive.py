"""
Fingerprinting and archiving of resolved package files.

The package reader only decides *which* files make up a package. An `Archiver`
decides how those files are hashed into a fingerprint and packed into an
artifact. `TarballArchiver` is the default: SHA-256 fingerprints and
reproducible `.tgz` artifacts.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import logging
import os
import shutil
import subprocess
import tarfile
import tempfile
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Protocol

from strif import atomic_output_file

if TYPE_CHECKING:
    from relpack.package_reader.types import File

log = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024

# Mode used in the tarball for the special scripts, whose own bits are ignored.
SPECIAL_FILE_MODE = 0o644


class ArchiveError(Exception):
    """Building a package artifact failed."""


class Archive(Protocol):
    def fingerprint(self) -> str: ...

    def build(self, dest: str | Path) -> str:
        """Materialize the artifact at `dest`, returning a digest of its bytes."""
        ...


class Archiver(Protocol):
    def create(
        self, files: Sequence[File], prep_files: Sequence[File], dependency_names: Sequence[str]
    ) -> Archive: ...


def _file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


class TarballArchive:
    """
    Files, pre-packaging scripts and dependency names of one package.

    The fingerprint covers the file count, then per file in relative-path order the
    relative path, a content digest and either the permission bits or a marker that
    they are excluded, then the count and sorted set of dependency names. Every
    field is length-prefixed.
    """

    def __init__(
        self, files: Sequence[File], prep_files: Sequence[File], dependency_names: Sequence[str]
    ) -> None:
        self.files = sorted(files, key=lambda f: f.relative_path)
        self.prep_files = list(prep_files)
        self.dependency_names = sorted(set(dependency_names))
        self._fingerprint: str | None = None

    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = self._compute_fingerprint()
        return self._fingerprint

    def _compute_fingerprint(self) -> str:
        h = hashlib.sha256()

        def add(field: str) -> None:
            data = field.encode("utf-8")
            h.update(f"{len(data)}:".encode())
            h.update(data)

        add(f"files:{len(self.files)}")
        for file in self.files:
            add(file.relative_path)
            add(_file_digest(file.path))
            if file.exclude_mode:
                add("nomode")
            else:
                add(f"mode:{file.path.stat().st_mode & 0o777:o}")
        add(f"deps:{len(self.dependency_names)}")
        for name in self.dependency_names:
            add(name)
        return h.hexdigest()

    def build(self, dest: str | Path) -> str:
        """
        Write the package artifact to `dest` and return the SHA-256 of its bytes.

        Files are staged into a temporary directory first. If there is a
        `pre_packaging` script it is run there (`bash -x`, with `BUILD_DIR` set to
        the staging directory) and then removed from the staging directory.
        """
        with tempfile.TemporaryDirectory(prefix="relpack-") as tmp:
            staging = Path(tmp)
            self._stage(staging)
            self._run_prep_files(staging)

            buffer = io.BytesIO()
            with tarfile.open(fileobj=buffer, mode="w") as tar:
                for member_path in sorted(staging.rglob("*")):
                    self._add_member(tar, member_path, member_path.relative_to(staging).as_posix())

        # Compress separately so the gzip header mtime is fixed too.
        data = gzip.compress(buffer.getvalue(), compresslevel=9, mtime=0)
        with atomic_output_file(Path(dest), make_parents=True) as tmp_dest:
            Path(tmp_dest).write_bytes(data)
        digest = hashlib.sha256(data).hexdigest()
        log.info("Wrote %s (%d bytes, sha256 %s)", dest, len(data), digest)
        return digest

    def _stage(self, staging: Path) -> None:
        for file in self.files:
            rel_path = PurePosixPath(file.relative_path)
            if rel_path.is_absolute() or ".." in rel_path.parts:
                raise ArchiveError(
                    f"Refusing to stage '{file.relative_path}' outside the package"
                )
            target = staging / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(file.path, target)
            mode = SPECIAL_FILE_MODE if file.exclude_mode else file.path.stat().st_mode & 0o777
            os.chmod(target, mode)

    def _run_prep_files(self, staging: Path) -> None:
        for prep in self.prep_files:
            script = staging / prep.relative_path
            log.debug("Running %s in %s", prep.relative_path, staging)
            try:
                subprocess.run(
                    ["bash", "-x", prep.relative_path],
                    cwd=staging,
                    env={**os.environ, "BUILD_DIR": str(staging)},
                    check=True,
                    capture_output=True,
                )
            except (OSError, subprocess.CalledProcessError) as e:
                stderr = getattr(e, "stderr", b"") or b""
                raise ArchiveError(
                    f"Running '{prep.relative_path}' failed: {e}\n{stderr.decode(errors='replace')}"
                ) from e
            script.unlink(missing_ok=True)

    @staticmethod
    def _add_member(tar: tarfile.TarFile, path: Path, rel_path: str) -> None:
        info = tarfile.TarInfo(rel_path)
        info.mtime = 0
        info.uid = info.gid = 0
        info.uname = info.gname = ""
        if path.is_dir():
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
            return
        st = path.stat()
        info.mode = st.st_mode & 0o777
        info.size = st.st_size
        with path.open("rb") as f:
            tar.addfile(info, f)


class TarballArchiver:
    """Default `Archiver`, producing `TarballArchive` objects."""

    def create(
        self, files: Sequence[File], prep_files: Sequence[File], dependency_names: Sequence[str]
    ) -> TarballArchive:
        return TarballArchive(files, prep_files, dependency_names)
