"""
Control-file writer — the DEBIAN/control manifest for dpkg-deb.
"""

from __future__ import annotations

import logging
from pathlib import Path

from debrepack.core.models.manifest import DEFAULT_MAINTAINER, DEFAULT_SECTION

logger = logging.getLogger(__name__)

CONTROL_DIR = "DEBIAN"
CONTROL_FILE = "control"


def render_control(
    name: str,
    version: str,
    architecture: str,
    *,
    maintainer: str = DEFAULT_MAINTAINER,
    section: str = DEFAULT_SECTION,
    description: str = "",
) -> str:
    """Render control-file text. Field order follows dpkg convention."""
    summary = description or f"{name} repackaged from upstream release"
    # single-line synopsis only
    summary = " ".join(summary.split())
    return (
        f"Package: {name}\n"
        f"Version: {version}\n"
        f"Architecture: {architecture}\n"
        f"Maintainer: {maintainer}\n"
        f"Section: {section}\n"
        f"Description: {summary}\n"
    )


def write_control(
    dest_root: Path,
    name: str,
    version: str,
    architecture: str,
    **fields: str,
) -> Path:
    """Write ``dest_root/DEBIAN/control`` and return its path."""
    control_dir = dest_root / CONTROL_DIR
    control_dir.mkdir(parents=True, exist_ok=True)
    control_dir.chmod(0o755)
    path = control_dir / CONTROL_FILE
    path.write_text(render_control(name, version, architecture, **fields), encoding="utf-8")
    path.chmod(0o644)
    logger.debug("Wrote %s", path)
    return path
