"""
Build use case — turn the manifest into package files.

This is the top-level entry point behind ``debrepack build``: it loads
the manifest, narrows it to the requested artifact and architecture,
runs every pair through the orchestrator, and appends the outcome to
the audit ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from debrepack.core.config.loader import (
    ConfigError,
    find_manifest_file,
    load_manifest,
    manifest_root,
    resolve_path,
)
from debrepack.core.engine.orchestrator import Orchestrator
from debrepack.core.engine.pipeline import PipelineContext
from debrepack.core.models.manifest import Manifest
from debrepack.core.models.result import BuildReport
from debrepack.core.persistence.audit import (
    DEFAULT_AUDIT_FILE,
    AuditEntry,
    AuditWriter,
    generate_operation_id,
)
from debrepack.core.services.builder import LogCallback, PackageBuilder
from debrepack.core.services.download import DownloadCache

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a build run."""

    report: BuildReport | None = None
    manifest: Manifest | None = None
    root: Path | None = None
    output_dir: Path | None = None
    operation_id: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
        if self.operation_id:
            result["operation_id"] = self.operation_id
        if self.output_dir:
            result["output_dir"] = str(self.output_dir)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_build(
    config_path: Path | None = None,
    only: str | None = None,
    arch: str | None = None,
    keep_going: bool = False,
    log_callback: LogCallback = None,
    downloader: DownloadCache | None = None,
    builder: PackageBuilder | None = None,
) -> BuildResult:
    """Build every (artifact, architecture) pair in the manifest.

    Args:
        config_path: Optional explicit path to debrepack.yml.
        only: Restrict the run to the artifact with this name.
        arch: Restrict the run to the architecture with this id.
        keep_going: Carry on past failed pairs instead of aborting.
        log_callback: Receives each line of builder output.
        downloader: Optional pre-configured download cache.
        builder: Optional pre-configured package builder.

    Returns:
        BuildResult; ``error`` is set when anything failed.
    """
    result = BuildResult()

    # ── Load manifest ────────────────────────────────────────────
    try:
        if config_path is None:
            config_path = find_manifest_file()
        if config_path is None:
            result.error = "No debrepack.yml found."
            return result

        manifest = load_manifest(config_path)
        result.root = manifest_root(config_path)

    except ConfigError as e:
        result.error = str(e)
        return result

    root = result.root
    assert root is not None

    # ── Narrow the run ───────────────────────────────────────────
    if only:
        manifest = manifest.restricted_to(only)
        if not manifest.packages and not manifest.apps:
            logger.warning("No package or app named '%s'; nothing to build", only)

    architectures = manifest.architectures
    if arch:
        selected = manifest.get_architecture(arch)
        if selected is None:
            known = ", ".join(a.id for a in manifest.architectures)
            result.error = f"Unknown architecture '{arch}' (known: {known})."
            return result
        architectures = [selected]

    result.manifest = manifest
    settings = manifest.settings
    work_dir = resolve_path(root, settings.work_dir)
    result.output_dir = resolve_path(root, settings.output_dir)

    # ── Run ──────────────────────────────────────────────────────
    result.operation_id = generate_operation_id()
    context = PipelineContext(
        work_dir=work_dir,
        output_dir=result.output_dir,
        settings=settings,
        downloader=downloader,
        builder=builder,
        log_callback=log_callback,
    )
    orchestrator = Orchestrator(
        architectures,
        context,
        fail_fast=False if keep_going else None,
    )
    report = orchestrator.run(manifest.packages, manifest.apps)
    result.report = report

    # ── Write audit log ──────────────────────────────────────────
    entry = AuditEntry.from_report(
        report,
        operation_id=result.operation_id,
        architectures=[a.id for a in architectures],
        artifacts=[p.name for p in manifest.packages] + [a.name for a in manifest.apps],
        only=only,
        context={"fail_fast": orchestrator.fail_fast, "config": str(config_path)},
    )
    AuditWriter(work_dir / DEFAULT_AUDIT_FILE).write(entry)

    if report.first_error is not None:
        result.error = str(report.first_error)
    logger.info(
        "Build %s: %d/%d pairs succeeded", report.status, report.succeeded, report.total
    )
    return result
