"""
Move-rule engine — lay extracted files out as a package tree.

Works in two stages so the tree is never mutated while being walked:

    1. Snapshot every regular file under the source root, once.
    2. For each rule in order, test its pattern against each snapshot
       path (the full path relative to the source root, with ``/``
       separators) and relocate the matches.

A file matched by more than one rule ends up at every destination.
Earlier matches copy it from the source tree and its last match moves
it, so a destination shared with another file never leaks into a later
copy.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from debrepack.core.errors import NoAssetsError, RuleCompileError
from debrepack.core.models.artifact import MoveRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Relocation:
    """One file placed by one rule."""

    rule_index: int
    source: str          # path relative to the source root
    destination: str     # path relative to the destination root
    mode: int


def compile_rules(rules: list[MoveRule], artifact: str) -> list[re.Pattern[str]]:
    """Compile every rule's pattern in declared order.

    Raises:
        RuleCompileError: Tagged with the failing rule's index.
    """
    compiled: list[re.Pattern[str]] = []
    for index, rule in enumerate(rules):
        try:
            compiled.append(re.compile(rule.src_regex))
        except re.error as e:
            raise RuleCompileError(artifact, index, rule.src_regex, str(e)) from e
    return compiled


def snapshot_files(root: Path) -> list[str]:
    """Relative POSIX paths of all regular files under ``root``, sorted."""
    if not root.is_dir():
        return []
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and not p.is_symlink()
    )


def destination_for(rule: MoveRule, source: str) -> str:
    """Where ``source`` lands under ``rule``.

    A ``dst`` ending in ``/`` names a directory; the file keeps its
    basename inside it.
    """
    if rule.dst.endswith("/"):
        return rule.dst + source.rsplit("/", 1)[-1]
    return rule.dst


def relocate(source: Path, target: Path) -> None:
    """Move a file, falling back to copy-and-delete across volumes."""
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(target))


def apply_move_rules(
    source_root: Path,
    rules: list[MoveRule],
    dest_root: Path,
    artifact: str,
    architecture: str = "",
) -> list[Relocation]:
    """Apply ``rules`` to the files under ``source_root``.

    Returns:
        Every relocation performed, in order.

    Raises:
        RuleCompileError: A pattern does not compile.
        NoAssetsError: No rule matched any file.
    """
    patterns = compile_rules(rules, artifact)
    files = snapshot_files(source_root)
    logger.debug("%s: %d files to match against %d rules", artifact, len(files), len(rules))

    matches = [
        (index, rel)
        for index, pattern in enumerate(patterns)
        for rel in files
        if pattern.search(rel)
    ]
    if not matches:
        raise NoAssetsError(artifact, architecture)

    # sources stay in place until their last matching rule, so every
    # destination is filled from the original file
    last_match = {rel: index for index, rel in matches}
    relocations: list[Relocation] = []

    for index, rel in matches:
        rule = rules[index]
        dst_rel = destination_for(rule, rel)
        target = dest_root / dst_rel

        if last_match[rel] == index:
            relocate(source_root / rel, target)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_root / rel, target)

        target.chmod(rule.mode)
        relocations.append(Relocation(index, rel, dst_rel, rule.mode))
        logger.info("%s: %s → %s (%s)", artifact, rel, dst_rel, oct(rule.mode))

    return relocations
