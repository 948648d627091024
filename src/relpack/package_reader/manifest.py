"""
Loading of the package `spec` file.

The spec is a YAML mapping::

    name: foo
    dependencies: [bar]
    files:
      - src/*.c
    excluded_files:
      - src/*_test.c
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, cast

import yaml

from relpack.package_reader.errors import ManifestError
from relpack.package_reader.filesystem import FileSystem, LocalFileSystem
from relpack.package_reader.types import Manifest

# Manifest fields that hold lists of strings; YAML keys use the same names.
_LIST_KEYS = ("files", "excluded_files", "dependencies")


class ManifestSource(Protocol):
    def parse(self, spec_path: str | Path) -> Manifest: ...


class YamlManifestSource:
    """Reads a `spec` file through a `FileSystem` and parses it with PyYAML."""

    def __init__(self, fs: FileSystem | None = None) -> None:
        self._fs: FileSystem = fs if fs is not None else LocalFileSystem()

    def parse(self, spec_path: str | Path) -> Manifest:
        try:
            content = self._fs.read_text(spec_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Reading package spec file '{spec_path}': {e}") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ManifestError(f"Unmarshalling package spec '{spec_path}': {e}") from e

        return parse_manifest_data(data, spec_path)


def parse_manifest_data(data: Any, spec_path: str | Path = "spec") -> Manifest:
    """Validate an already-loaded YAML document and build a `Manifest`."""
    if not isinstance(data, dict):
        raise ManifestError(f"Expected package spec '{spec_path}' to be a mapping")
    mapping = cast(dict[str, Any], data)

    name = mapping.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"Expected package spec '{spec_path}' to have a non-empty 'name'")

    lists: dict[str, list[str]] = {}
    for key in _LIST_KEYS:
        value = mapping.get(key)
        if value is None:
            lists[key] = []
            continue
        if not isinstance(value, list) or not all(
            isinstance(item, str) for item in cast(list[Any], value)
        ):
            raise ManifestError(
                f"Expected '{key}' in package spec '{spec_path}' to be a list of strings"
            )
        lists[key] = list(cast(list[str], value))

    return Manifest(name=name, **lists)
