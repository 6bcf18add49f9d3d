"""
Configuration loader — reads debrepack.yml into a validated Manifest.

The ``packages`` and ``apps`` keys may each hold an inline list or the
path (relative to the manifest) of a separate YAML file containing a
top-level list, so existing ``package.yml`` / ``app.yml`` files can be
referenced instead of copied.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from debrepack.core.errors import RepackError
from debrepack.core.models.manifest import Manifest

logger = logging.getLogger(__name__)

# Default config filename
MANIFEST_FILE = "debrepack.yml"

_LIST_KEYS = ("packages", "apps")


class ConfigError(RepackError):
    """Raised when the manifest is invalid or missing."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for debrepack.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to debrepack.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def _load_list(value: Any, key: str, base_dir: Path) -> list:
    """Inline list, or a path to a YAML file holding one."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        path = (base_dir / value).resolve()
        if not path.is_file():
            raise ConfigError(f"'{key}' file not found: {path}")
        data = _read_yaml(path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ConfigError(f"Expected a YAML list in {path}, got {type(data).__name__}")
        logger.debug("Loaded %d %s from %s", len(data), key, path)
        return data
    raise ConfigError(f"'{key}' must be a list or a file path, got {type(value).__name__}")


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate the manifest.

    Args:
        path: Explicit path to debrepack.yml. If None, searches upward.

    Returns:
        Validated Manifest model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_manifest_file()

    if path is None:
        raise ConfigError(f"No {MANIFEST_FILE} found. Create one, or specify --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading manifest from %s", path)
    data = _read_yaml(path)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    base_dir = path.parent
    for key in _LIST_KEYS:
        if key in data:
            data[key] = _load_list(data[key], key, base_dir)

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest configuration: {e}") from e

    logger.info(
        "Loaded manifest with %d packages, %d apps, %d architectures",
        len(manifest.packages), len(manifest.apps), len(manifest.architectures),
    )
    return manifest


def manifest_root(config_path: Path) -> Path:
    """Get the directory relative paths in the manifest resolve against."""
    return config_path.parent.resolve()


def resolve_path(root: Path, value: str) -> Path:
    """Resolve a manifest setting path; relative ones are taken from ``root``."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path
