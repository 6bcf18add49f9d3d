"""
debrepack — CLI entrypoint.

Usage:
    python -m debrepack.main --help
    python -m debrepack.main build
    python -m debrepack.main config check
"""

from __future__ import annotations

import json
import os
import shutil
import sys
from pathlib import Path

import click

from debrepack import __version__
from debrepack.core.observability.logging_config import setup_logging

_STATUS_COLORS = {"ok": "green", "partial": "yellow", "failed": "red"}


@click.group()
@click.version_option(version=__version__, prog_name="debrepack")
@click.option("--verbose", "-v", is_flag=True, help="Show progress and builder output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to debrepack.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """debrepack — repackage upstream releases as Debian packages."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("DEBREPACK_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("DEBREPACK_LOG_FILE"),
        log_file_level=os.environ.get("DEBREPACK_LOG_FILE_LEVEL"),
    )


# ── build ────────────────────────────────────────────────────────


@cli.command()
@click.option("--only", default=None, metavar="NAME", help="Build only the artifact with this name.")
@click.option("--arch", default=None, metavar="ID", help="Build only this architecture.")
@click.option("--keep-going", is_flag=True, help="Continue past failed pairs.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def build(
    ctx: click.Context,
    only: str | None,
    arch: str | None,
    keep_going: bool,
    as_json: bool,
) -> None:
    """Download, lay out, and build every package in the manifest.

    Examples:

        debrepack build

        debrepack build --only vale --arch arm64

        debrepack build --keep-going
    """
    from debrepack.core.use_cases.build import run_build

    result = run_build(
        config_path=ctx.obj.get("config_path"),
        only=only,
        arch=arch,
        keep_going=keep_going,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    report = result.report
    if report is None:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        click.secho(f"\n📦 Build {result.operation_id}", fg="cyan", bold=True)
        click.echo(f"   Output: {result.output_dir}")
        click.echo()

    for pair in report.results:
        label = f"{pair.artifact} ({pair.architecture})"
        timing = f" ({pair.duration_ms}ms)" if pair.duration_ms else ""
        if pair.ok:
            if not quiet:
                click.secho(f"   ✓ {label}", fg="green", nl=False)
                click.echo(f"{timing}  → {pair.output}")
        else:
            click.secho(f"   ✗ {label}", fg="red", nl=False)
            click.echo(timing)
            for line in (pair.error or "").split("\n")[:5]:
                click.echo(f"     │ {line}")

    if report.aborted:
        click.secho("   ⊘ Remaining pairs skipped (use --keep-going to continue)", fg="yellow")

    click.echo()
    click.secho(
        f"   Result: {report.succeeded}/{report.total} succeeded",
        fg=_STATUS_COLORS.get(report.status, "white"),
        bold=True,
    )
    click.echo()

    if result.error:
        sys.exit(1)


# ── config ───────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Manifest management."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate debrepack.yml."""
    from debrepack.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        manifest = result.manifest
        assert manifest is not None
        click.secho("✅ Manifest is valid", fg="green", bold=True)
        click.echo(f"   Packages: {len(manifest.packages)}")
        click.echo(f"   Apps: {len(manifest.apps)}")
        click.echo(f"   Architectures: {', '.join(a.id for a in manifest.architectures)}")
    else:
        click.secho("❌ Manifest errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


# ── archs ────────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def archs(ctx: click.Context, as_json: bool) -> None:
    """List target architectures and their template variables."""
    from debrepack.core.config.loader import ConfigError, load_manifest

    try:
        manifest = load_manifest(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        data = [
            {"id": a.id, "deb": a.deb, "variables": a.template_names()}
            for a in manifest.architectures
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for arch in manifest.architectures:
        click.secho(f"   {arch.id}", fg="cyan", bold=True)
        for name, value in sorted(arch.template_names().items()):
            click.echo(f"     {{{{ {name} }}}} = {value}")


# ── clean ────────────────────────────────────────────────────────


@cli.command()
@click.option("--cache", "include_cache", is_flag=True, help="Also remove downloaded files.")
@click.pass_context
def clean(ctx: click.Context, include_cache: bool) -> None:
    """Remove staging trees left under the work directory."""
    from debrepack.core.config.loader import (
        ConfigError,
        find_manifest_file,
        load_manifest,
        manifest_root,
        resolve_path,
    )

    config_path = ctx.obj.get("config_path") or find_manifest_file()
    try:
        manifest = load_manifest(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    assert config_path is not None
    work_dir = resolve_path(manifest_root(config_path), manifest.settings.work_dir)

    targets = [work_dir / "staging"]
    if include_cache:
        targets.append(work_dir / "cache")

    removed = 0
    for target in targets:
        if target.is_dir():
            shutil.rmtree(target)
            removed += 1
            if not ctx.obj.get("quiet"):
                click.echo(f"   🗑  {target}")

    if removed == 0 and not ctx.obj.get("quiet"):
        click.echo("   Nothing to clean.")


if __name__ == "__main__":
    cli()
