#!/usr/bin/env python3
"""
relpack: Content-addressed fingerprints for release packages

Common usage:
  relpack packages/foo
  relpack packages/*
  relpack --list-files packages/foo
  relpack --build dist/ packages/foo

Source and blobs roots default to `src/` and `blobs/` next to the
`packages/` directory. Override them with --src-dir / --blobs-dir or in
`relpack.toml` (`src-dir`, `blobs-dir`, `archive-dir`).
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from relpack.archive import ArchiveError, TarballArchiver
from relpack.config import ConfigError, find_config_file, load_config, merge_cli_with_config
from relpack.package_reader import PackageDirReader, PackageReadError

log = logging.getLogger(__name__)


@dataclass
class Options:
    """Command-line options for the relpack tool."""

    packages: list[str]
    src_dir: Path | None
    blobs_dir: Path | None
    archive_dir: Path | None
    list_files: bool
    verbose: bool
    version: bool


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` holds
    the path options the user passed (for config merge precedence).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "packages",
        nargs="*",
        type=str,
        default=[],
        help="Package directories (each containing spec and packaging)",
    )
    parser.add_argument(
        "--src-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Source root that `files` patterns are matched against first",
    )
    parser.add_argument(
        "--blobs-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Blobs root, used for paths not found under the source root",
    )
    parser.add_argument(
        "--build",
        type=Path,
        default=None,
        dest="archive_dir",
        metavar="DIR",
        help="Write each package artifact to DIR/<name>-<fingerprint>.tgz",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print the resolved files of each package instead of fingerprints",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    explicit_flags = {
        name for name in ("src_dir", "blobs_dir", "archive_dir") if getattr(opts, name) is not None
    }

    return (
        Options(
            packages=opts.packages,
            src_dir=opts.src_dir,
            blobs_dir=opts.blobs_dir,
            archive_dir=opts.archive_dir,
            list_files=opts.list_files,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _make_reader(options: Options, package_dir: Path) -> PackageDirReader:
    """Reader for one package, defaulting roots to the release layout around it."""
    release_dir = package_dir.resolve().parent.parent
    src_dir = options.src_dir if options.src_dir is not None else release_dir / "src"
    blobs_dir = options.blobs_dir if options.blobs_dir is not None else release_dir / "blobs"
    return PackageDirReader(TarballArchiver(), src_dir=src_dir, blobs_dir=blobs_dir)


def _process_package(options: Options, package_dir: Path) -> None:
    reader = _make_reader(options, package_dir)

    if options.list_files:
        manifest, files, _ = reader.collect_files(package_dir)
        for file in files:
            print(f"{manifest.name}\t{file.relative_path}")
        return

    package = reader.read(package_dir)
    print(f"{package.name} {package.fingerprint}")

    if options.archive_dir is not None:
        dest = options.archive_dir / f"{package.name}-{package.fingerprint}.tgz"
        package.resource.archive.build(dest)


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the relpack CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("relpack")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not options.packages:
        print(
            "Error: No package directories specified. Use --help for more options.",
            file=sys.stderr,
        )
        return 1

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            log.debug("Using config file %s", config_path)
            merge_cli_with_config(options, load_config(config_path), explicit_flags)

        for package in options.packages:
            _process_package(options, Path(package))
    except (PackageReadError, ArchiveError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
