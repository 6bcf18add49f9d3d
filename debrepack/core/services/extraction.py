"""
Archive extractor — classify a download by name and unpack it.

Dispatch is a suffix table, longest suffix first:

    .tar.gz / .tgz   → gzip stream wrapping a tar
    .tar.xz / .txz   → xz stream wrapping a tar
    (no extension)   → pre-built file, copied through untouched

Anything else with an extension is an unknown format. Tar entries are
read strictly in order from the decompression stream; only directories
and regular files are materialized. The stream is always read to its
end, so a failed gzip CRC or xz integrity check is an error even when
the tar itself parsed cleanly.
"""

from __future__ import annotations

import gzip
import logging
import lzma
import re
import shutil
import tarfile
import zlib
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import IO

from debrepack.core.errors import ExtractionError

logger = logging.getLogger(__name__)


class ArchiveKind(Enum):
    """How a downloaded file gets into the source tree."""

    GZIP_TAR = "gzip-tar"
    XZ_TAR = "xz-tar"
    PASSTHROUGH = "passthrough"

    @property
    def extracts(self) -> bool:
        return self is not ArchiveKind.PASSTHROUGH


SUFFIXES: dict[str, ArchiveKind] = {
    ".tar.gz": ArchiveKind.GZIP_TAR,
    ".tgz": ArchiveKind.GZIP_TAR,
    ".tar.xz": ArchiveKind.XZ_TAR,
    ".txz": ArchiveKind.XZ_TAR,
}

_OPENERS: dict[ArchiveKind, Callable[..., IO[bytes]]] = {
    ArchiveKind.GZIP_TAR: gzip.open,
    ArchiveKind.XZ_TAR: lzma.open,
}

_CHUNK_SIZE = 64 * 1024

# A trailing ".segment" is an extension only if it starts with a letter,
# so "tool-1.2.3" and "tool_v2.0-linux" count as extensionless.
_EXTENSION_RE = re.compile(r"\.[A-Za-z][A-Za-z0-9]*$")

_TYPE_NAMES = {
    tarfile.SYMTYPE: "symlink",
    tarfile.LNKTYPE: "hardlink",
    tarfile.CHRTYPE: "character device",
    tarfile.BLKTYPE: "block device",
    tarfile.FIFOTYPE: "fifo",
}


def classify(filename: str) -> ArchiveKind:
    """Pick the extraction strategy for ``filename``.

    Raises:
        ExtractionError: The name has an extension outside the table.
    """
    lowered = filename.lower()
    for suffix in sorted(SUFFIXES, key=len, reverse=True):
        if lowered.endswith(suffix):
            return SUFFIXES[suffix]
    if _EXTENSION_RE.search(filename) is None:
        return ArchiveKind.PASSTHROUGH
    raise ExtractionError(f"Unknown archive format: {filename}")


def extract(archive: Path, dest: Path) -> ArchiveKind:
    """Unpack ``archive`` into ``dest`` according to its name.

    Pass-through files are copied into ``dest`` under their own name.

    Returns:
        The strategy that was applied.
    """
    kind = classify(archive.name)
    dest.mkdir(parents=True, exist_ok=True)

    if not kind.extracts:
        logger.debug("Copying pre-built file %s", archive.name)
        shutil.copy2(archive, dest / archive.name)
        return kind

    logger.debug("Extracting %s (%s) into %s", archive.name, kind.value, dest)
    opener = _OPENERS[kind]
    try:
        with opener(archive, "rb") as stream, tarfile.open(fileobj=stream, mode="r|") as tar:
            for member in tar:
                _extract_member(tar, member, dest)
            # tar stops at its end-of-archive blocks; read on so the codec
            # reaches its trailer and verifies the checksum
            while stream.read(_CHUNK_SIZE):
                pass
    except (tarfile.TarError, lzma.LZMAError, zlib.error, EOFError, OSError) as e:
        raise ExtractionError(f"Failed to extract {archive.name}: {e}") from e
    return kind


def _member_path(name: str) -> str:
    """Strip leading ``/`` and ``./`` from a member name."""
    cleaned = name.lstrip("/")
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return cleaned.rstrip("/")


def _safe_target(dest: Path, relative: str) -> Path:
    target = (dest / relative).resolve()
    root = dest.resolve()
    if target != root and root not in target.parents:
        raise ExtractionError(f"Unsafe archive path detected: {relative}")
    return target


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, dest: Path) -> None:
    relative = _member_path(member.name)
    if not relative or relative == ".":
        return

    if member.isdir():
        _safe_target(dest, relative).mkdir(parents=True, exist_ok=True)
        return

    if member.isreg():
        target = _safe_target(dest, relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        source = tar.extractfile(member)
        if source is None:
            raise ExtractionError(f"Unable to read tar member: {member.name}")
        with source, open(target, "wb") as out:
            shutil.copyfileobj(source, out)
        mode = member.mode & 0o777
        if mode:
            target.chmod(mode)
        return

    kind = _TYPE_NAMES.get(member.type, f"type {member.type!r}")
    logger.warning("Skipping %s (%s)", member.name, kind)
