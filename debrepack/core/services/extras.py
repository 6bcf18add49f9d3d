"""
Extra-file fetcher — supplementary downloads into the package tree.

Runs after move rules, so nothing fetched here can be picked up by a
rule meant for archive content.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from debrepack.core.models.architecture import Architecture
from debrepack.core.models.artifact import ExtraFile
from debrepack.core.services.download import DownloadCache
from debrepack.core.services.templating import resolve_url

logger = logging.getLogger(__name__)


def fetch_extra_files(
    extras: list[ExtraFile],
    dest_root: Path,
    version: str,
    arch: Architecture,
    downloader: DownloadCache,
    *,
    strict: bool = False,
) -> list[Path]:
    """Download each extra file to its declared place under ``dest_root``."""
    placed: list[Path] = []
    for extra in extras:
        url = resolve_url(extra.url, version, arch, strict=strict)
        rel = PurePosixPath(extra.dst)
        target = downloader.fetch(dest_root / rel.parent, rel.name, url)
        target.chmod(extra.mode)
        logger.info("Added %s (%s)", extra.dst, oct(extra.mode))
        placed.append(target)
    return placed
