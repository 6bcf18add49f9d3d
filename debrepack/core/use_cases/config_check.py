"""
Config check use case — validate debrepack.yml and report issues.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from debrepack.core.config.loader import ConfigError, find_manifest_file, load_manifest
from debrepack.core.errors import ExtractionError
from debrepack.core.models.manifest import Manifest
from debrepack.core.services.download import url_filename
from debrepack.core.services.extraction import classify
from debrepack.core.services.templating import (
    resolve,
    template_variables,
    unresolved_placeholders,
)


@dataclass
class ConfigCheckResult:
    """Result of manifest validation."""

    valid: bool = False
    manifest: Manifest | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        m = self.manifest
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "package_count": len(m.packages) if m else 0,
            "app_count": len(m.apps) if m else 0,
            "architectures": [a.id for a in m.architectures] if m else [],
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the manifest and report issues.

    Args:
        config_path: Optional explicit path to debrepack.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_manifest_file()
    if config_path is None:
        result.errors.append("No debrepack.yml found.")
        return result
    result.config_path = config_path

    try:
        manifest = load_manifest(config_path)
        result.manifest = manifest
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    if not manifest.packages and not manifest.apps:
        result.warnings.append("No packages or apps defined. Nothing will be built.")

    for app in manifest.apps:
        if not app.move_rules:
            result.warnings.append(
                f"App '{app.name}' has no move_rules; its build will always fail."
            )

    # Placeholders and archive formats, per architecture
    for arch in manifest.architectures:
        for name, version, url in [
            *((p.name, p.version, p.url) for p in manifest.packages),
            *((a.name, a.version, a.url_for(arch.id)) for a in manifest.apps),
        ]:
            unknown = unresolved_placeholders(url, template_variables(version, arch))
            if unknown:
                result.warnings.append(
                    f"'{name}' ({arch.id}): unknown placeholders {', '.join(unknown)}"
                )

        for app in manifest.apps:
            url = resolve(app.url_for(arch.id), template_variables(app.version, arch))
            try:
                classify(url_filename(url, default=app.name))
            except ExtractionError as e:
                result.errors.append(f"App '{app.name}' ({arch.id}): {e}")

    # Toolchain
    settings = manifest.settings
    for tool in filter(None, [settings.privilege_wrapper, settings.builder[0]]):
        if shutil.which(tool) is None:
            result.warnings.append(f"'{tool}' not found on PATH; builds will fail.")

    result.valid = len(result.errors) == 0
    return result
