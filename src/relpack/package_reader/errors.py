"""Errors raised while reading a package directory."""

from __future__ import annotations


class PackageReadError(Exception):
    """Base class for all package resolution failures."""


class ManifestError(PackageReadError):
    """The package `spec` file is unreadable or malformed."""


class MissingBuildScriptError(PackageReadError):
    """The `packaging` script is absent, or is not a regular file."""

    def __init__(self, package_name: str, path: str, reason: str = "Expected to find") -> None:
        self.package_name = package_name
        self.path = path
        super().__init__(f"{reason} '{path}' for package '{package_name}'")


class FileSystemError(PackageReadError):
    """A glob or stat call failed during resolution."""


class NamingCollisionError(PackageReadError):
    """A special file name was also selected through the `files` patterns."""

    def __init__(self, package_name: str, special_file: str) -> None:
        self.package_name = package_name
        self.special_file = special_file
        super().__init__(
            f"Expected special '{special_file}' file to not be included "
            f"via 'files' key for package '{package_name}'"
        )
