"""
Pipeline — drives one (artifact, architecture) pair to a package file.

App pairs walk every state:

    IDLE → RESOLVING_URL → DOWNLOADING → EXTRACTING → RELOCATING
         → FETCHING_EXTRAS → WRITING_CONTROL → BUILDING → DONE

``EXTRACTING`` is skipped when the download is an extensionless
pre-built file. Package pairs stop after ``DOWNLOADING`` and copy the
file to the output directory. Any failure lands the pair in ``FAILED``.
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from debrepack.core.errors import RepackError
from debrepack.core.models.architecture import Architecture
from debrepack.core.models.artifact import AppSpec, PackageSpec
from debrepack.core.models.manifest import BuildSettings
from debrepack.core.models.result import PairResult, PairState
from debrepack.core.services.builder import LogCallback, PackageBuilder
from debrepack.core.services.control import write_control
from debrepack.core.services.download import DownloadCache, url_filename
from debrepack.core.services.extraction import classify, extract
from debrepack.core.services.extras import fetch_extra_files
from debrepack.core.services.relocation import apply_move_rules
from debrepack.core.services.templating import resolve_url

logger = logging.getLogger(__name__)

PACKAGE_SUFFIX = ".deb"


@dataclass
class PipelineContext:
    """Shared collaborators and directory layout for every pair in a run."""

    work_dir: Path
    output_dir: Path
    settings: BuildSettings = field(default_factory=BuildSettings)
    downloader: DownloadCache | None = None
    builder: PackageBuilder | None = None
    log_callback: LogCallback = None

    def __post_init__(self) -> None:
        self.work_dir = Path(self.work_dir)
        self.output_dir = Path(self.output_dir)
        if self.downloader is None:
            self.downloader = DownloadCache(
                timeout=self.settings.fetch_timeout,
                user_agent=self.settings.user_agent,
            )
        if self.builder is None:
            self.builder = PackageBuilder(
                command=self.settings.builder,
                privilege_wrapper=self.settings.privilege_wrapper,
            )

    @property
    def staging_root(self) -> Path:
        return self.work_dir / "staging"

    @property
    def cache_root(self) -> Path:
        return self.work_dir / "cache"

    def cache_dir(self, arch: Architecture, name: str, version: str) -> Path:
        return self.cache_root / arch.deb / f"{name}-{version}"

    def staging_dir(self, arch: Architecture, name: str) -> Path:
        return self.staging_root / arch.deb / name

    def output_path(self, arch: Architecture, name: str, version: str) -> Path:
        return self.output_dir / arch.deb / f"{name}_{version}_{arch.deb}{PACKAGE_SUFFIX}"


class PairPipeline:
    """Base state machine for one pair. Subclasses implement ``execute``."""

    kind = ""

    def __init__(self, name: str, arch: Architecture, context: PipelineContext) -> None:
        self.name = name
        self.arch = arch
        self.context = context
        self.state = PairState.IDLE
        self.states: list[PairState] = [PairState.IDLE]
        self.url = ""
        self.relocated = 0
        self.error: Exception | None = None

    def _enter(self, state: PairState) -> None:
        logger.debug("%s (%s): %s → %s", self.name, self.arch.id, self.state.value, state.value)
        self.state = state
        self.states.append(state)

    def execute(self) -> Path:
        raise NotImplementedError

    def run(self) -> PairResult:
        """Execute the pair and record the outcome instead of raising."""
        start = time.monotonic()
        result = PairResult(artifact=self.name, kind=self.kind, architecture=self.arch.id)

        try:
            output = self.execute()
        except (RepackError, OSError) as e:
            failed_in = self.state
            self._enter(PairState.FAILED)
            self.error = e
            result.status = "failed"
            result.error = str(e)
            logger.error(
                "%s (%s) failed while %s: %s",
                self.name, self.arch.id, failed_in.value.replace("_", " "), e,
            )
        else:
            self._enter(PairState.DONE)
            result.output = str(output)
            logger.info("%s (%s) → %s", self.name, self.arch.id, output)

        result.states = list(self.states)
        result.url = self.url
        result.relocated = self.relocated
        result.duration_ms = int((time.monotonic() - start) * 1000)
        return result


class PackagePipeline(PairPipeline):
    """Fetch an upstream package file and copy it to the output tree."""

    kind = "package"

    def __init__(self, spec: PackageSpec, arch: Architecture, context: PipelineContext) -> None:
        super().__init__(spec.name, arch, context)
        self.spec = spec

    def execute(self) -> Path:
        ctx = self.context
        spec = self.spec
        assert ctx.downloader is not None

        self._enter(PairState.RESOLVING_URL)
        self.url = resolve_url(
            spec.url, spec.version, self.arch, strict=ctx.settings.strict_templates
        )

        self._enter(PairState.DOWNLOADING)
        cached = ctx.downloader.fetch(
            ctx.cache_dir(self.arch, spec.name, spec.version),
            f"{spec.name}-{self.arch.deb}-{spec.version}{PACKAGE_SUFFIX}",
            self.url,
        )

        output = ctx.output_path(self.arch, spec.name, spec.version)
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(cached, output)
        return output


class AppPipeline(PairPipeline):
    """Build a package from an upstream archive and its move rules."""

    kind = "app"

    def __init__(self, app: AppSpec, arch: Architecture, context: PipelineContext) -> None:
        super().__init__(app.name, arch, context)
        self.app = app
        self.package_name = app.name_for(arch.id)

    def _fresh_staging(self) -> tuple[Path, Path, Path]:
        staging = self.context.staging_dir(self.arch, self.package_name)
        if staging.exists():
            shutil.rmtree(staging)
        source_root = staging / "src"
        dest_root = staging / "root"
        source_root.mkdir(parents=True)
        dest_root.mkdir(parents=True)
        return staging, source_root, dest_root

    def execute(self) -> Path:
        ctx = self.context
        app = self.app
        arch = self.arch
        settings = ctx.settings
        assert ctx.downloader is not None and ctx.builder is not None

        staging, source_root, dest_root = self._fresh_staging()

        # ── Resolve ──────────────────────────────────────────────
        self._enter(PairState.RESOLVING_URL)
        self.url = resolve_url(
            app.url_for(arch.id), app.version, arch, strict=settings.strict_templates
        )
        filename = url_filename(self.url, default=f"{app.name}-{app.version}")
        kind = classify(filename)

        # ── Fetch ────────────────────────────────────────────────
        self._enter(PairState.DOWNLOADING)
        archive = ctx.downloader.fetch(ctx.cache_dir(arch, app.name, app.version), filename, self.url)

        # ── Unpack ───────────────────────────────────────────────
        if kind.extracts:
            self._enter(PairState.EXTRACTING)
        extract(archive, source_root)

        # ── Lay out ──────────────────────────────────────────────
        self._enter(PairState.RELOCATING)
        relocations = apply_move_rules(source_root, app.move_rules, dest_root, app.name, arch.id)
        self.relocated = len(relocations)

        self._enter(PairState.FETCHING_EXTRAS)
        fetch_extra_files(
            app.extra_files, dest_root, app.version, arch, ctx.downloader,
            strict=settings.strict_templates,
        )

        self._enter(PairState.WRITING_CONTROL)
        write_control(
            dest_root,
            self.package_name,
            app.version,
            arch.deb,
            maintainer=settings.maintainer,
            section=settings.section,
            description=app.description,
        )

        # ── Build ────────────────────────────────────────────────
        self._enter(PairState.BUILDING)
        output = ctx.output_path(arch, self.package_name, app.version)
        ctx.builder.build(dest_root, output, log_callback=ctx.log_callback)

        if not settings.keep_staging:
            shutil.rmtree(staging, ignore_errors=True)
        return output
