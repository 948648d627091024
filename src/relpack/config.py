"""
TOML-based config file loading for relpack.

Searches for `.relpack.toml`, `relpack.toml`, or `pyproject.toml [tool.relpack]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar


class ConfigError(Exception):
    """The config file could not be read or has invalid values."""


@dataclass
class RelpackConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    so the merge logic can tell "not configured" from "set to the default value".
    Paths are already resolved against the config file's directory.
    """

    src_dir: Path | None = None
    blobs_dir: Path | None = None
    archive_dir: Path | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".relpack.toml", "relpack.toml", "pyproject.toml"]

_VALID_FIELDS = {f.name for f in fields(RelpackConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.relpack.toml` >
    `relpack.toml` > `pyproject.toml` (only if it has `[tool.relpack]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename != "pyproject.toml" or _pyproject_has_relpack_section(candidate):
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_relpack_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "relpack" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> RelpackConfig:
    """
    Load a `RelpackConfig` from a TOML file. Supports both standalone
    `relpack.toml` / `.relpack.toml` and `pyproject.toml` (extracts
    `[tool.relpack]`). TOML kebab-case keys are mapped to Python snake_case.
    """
    try:
        data = tomllib.loads(config_path.read_text())
    except (tomllib.TOMLDecodeError, OSError) as e:
        raise ConfigError(f"Reading config file '{config_path}': {e}") from e

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("relpack", {})

    return _parse_config_data(data, config_path.parent.resolve())


def _parse_config_data(data: dict[str, Any], base_dir: Path) -> RelpackConfig:
    mapped: dict[str, Path] = {}
    for key, value in data.items():
        snake_key = key.replace("-", "_")
        if snake_key not in _VALID_FIELDS:
            continue
        if not isinstance(value, str):
            raise ConfigError(f"Expected '{key}' to be a path string, got {value!r}")
        mapped[snake_key] = base_dir / value

    return RelpackConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: RelpackConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(RelpackConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None or cfg_field.name in explicit_flags:
            continue
        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
