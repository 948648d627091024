"""
Resolution of a release package directory into a fingerprinted `Package`.

Usage::

    from relpack.archive import TarballArchiver
    from relpack.package_reader import PackageDirReader

    reader = PackageDirReader(TarballArchiver(), src_dir="release/src", blobs_dir="release/blobs")
    package = reader.read("release/packages/foo")
    print(package.name, package.fingerprint)
"""

from relpack.package_reader.errors import (
    FileSystemError,
    ManifestError,
    MissingBuildScriptError,
    NamingCollisionError,
    PackageReadError,
)
from relpack.package_reader.filesystem import FileSystem, LocalFileSystem
from relpack.package_reader.manifest import ManifestSource, YamlManifestSource
from relpack.package_reader.patterns import PatternMatcher
from relpack.package_reader.reader import (
    PACKAGING_FILE_NAME,
    PRE_PACKAGING_FILE_NAME,
    SPEC_FILE_NAME,
    PackageDirReader,
)
from relpack.package_reader.types import File, Manifest, Package, Resource

__all__ = [
    "PACKAGING_FILE_NAME",
    "PRE_PACKAGING_FILE_NAME",
    "SPEC_FILE_NAME",
    "File",
    "FileSystem",
    "FileSystemError",
    "LocalFileSystem",
    "Manifest",
    "ManifestError",
    "ManifestSource",
    "MissingBuildScriptError",
    "NamingCollisionError",
    "Package",
    "PackageDirReader",
    "PackageReadError",
    "PatternMatcher",
    "Resource",
    "YamlManifestSource",
]
