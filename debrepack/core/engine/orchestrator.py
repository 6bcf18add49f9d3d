"""
Orchestrator — runs every (artifact, architecture) pair in turn.

Architectures are the outer loop; within one architecture, packages
run before apps, each in declared order. Pairs run strictly one at a
time. With ``fail_fast`` (the default) the first failed pair ends the
run and later pairs are never started; otherwise failures are recorded
and the batch carries on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from debrepack.core.engine.pipeline import (
    AppPipeline,
    PackagePipeline,
    PairPipeline,
    PipelineContext,
)
from debrepack.core.models.architecture import Architecture
from debrepack.core.models.artifact import AppSpec, PackageSpec
from debrepack.core.models.result import BuildReport

logger = logging.getLogger(__name__)


class Orchestrator:
    """Drive the full Cartesian product of architectures and artifacts."""

    def __init__(
        self,
        architectures: Sequence[Architecture],
        context: PipelineContext,
        fail_fast: bool | None = None,
    ) -> None:
        self.architectures = list(architectures)
        self.context = context
        self.fail_fast = context.settings.fail_fast if fail_fast is None else fail_fast

    def pairs(
        self,
        packages: Sequence[PackageSpec],
        apps: Sequence[AppSpec],
    ) -> Iterator[PairPipeline]:
        """Yield one fresh pipeline per pair, in run order."""
        for arch in self.architectures:
            for pkg in packages:
                yield PackagePipeline(pkg, arch, self.context)
            for app in apps:
                yield AppPipeline(app, arch, self.context)

    def run(
        self,
        packages: Sequence[PackageSpec],
        apps: Sequence[AppSpec],
    ) -> BuildReport:
        """Run every pair and return the collected results."""
        report = BuildReport()
        planned = len(self.architectures) * (len(packages) + len(apps))
        logger.info(
            "Building %d pairs (%d architectures × %d artifacts)",
            planned, len(self.architectures), len(packages) + len(apps),
        )

        for pipeline in self.pairs(packages, apps):
            logger.info("Processing %s %s (%s)", pipeline.kind, pipeline.name, pipeline.arch.id)
            result = pipeline.run()
            report.results.append(result)

            if result.ok:
                continue
            if report.first_error is None:
                report.first_error = pipeline.error
            if self.fail_fast:
                report.aborted = True
                skipped = planned - report.total
                if skipped:
                    logger.warning("Aborting run: %d remaining pairs not attempted", skipped)
                break

        return report
