"""
Manifest model — the root of a debrepack.yml file.

Loaded by ``debrepack.core.config.loader``. Holds the two ordered
artifact lists, the architecture table, and run settings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from debrepack.core.models.architecture import Architecture, default_architectures
from debrepack.core.models.artifact import AppSpec, PackageSpec

DEFAULT_MAINTAINER = "debrepack <debrepack@localhost>"
DEFAULT_SECTION = "utils"


class BuildSettings(BaseModel):
    """Knobs for one build run. Every field has a working default."""

    work_dir: str = ".debrepack"
    output_dir: str = "dist"

    maintainer: str = DEFAULT_MAINTAINER
    section: str = DEFAULT_SECTION

    fetch_timeout: float = 60.0
    user_agent: str = "debrepack/1.0"

    builder: list[str] = Field(default_factory=lambda: ["dpkg-deb", "--build"], min_length=1)
    privilege_wrapper: str = "fakeroot"

    strict_templates: bool = False
    keep_staging: bool = False
    fail_fast: bool = True


class Manifest(BaseModel):
    """Everything a build run needs, validated."""

    packages: list[PackageSpec] = Field(default_factory=list)
    apps: list[AppSpec] = Field(default_factory=list)
    architectures: list[Architecture] = Field(default_factory=default_architectures)
    settings: BuildSettings = Field(default_factory=BuildSettings)

    @model_validator(mode="after")
    def _check_consistency(self) -> Manifest:
        arch_ids = [a.id for a in self.architectures]
        if not arch_ids:
            raise ValueError("at least one architecture is required")
        dupes = sorted({a for a in arch_ids if arch_ids.count(a) > 1})
        if dupes:
            raise ValueError(f"duplicate architecture ids: {', '.join(dupes)}")

        for label, names in (
            ("package", [p.name for p in self.packages]),
            ("app", [a.name for a in self.apps]),
        ):
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                raise ValueError(f"duplicate {label} names: {', '.join(dupes)}")

        known = set(arch_ids)
        for app in self.apps:
            unknown = sorted((set(app.urls) | set(app.names)) - known)
            if unknown:
                raise ValueError(
                    f"app '{app.name}' overrides unknown architectures: {', '.join(unknown)}"
                )
        return self

    def get_architecture(self, arch_id: str) -> Architecture | None:
        """Look up an architecture by id."""
        for arch in self.architectures:
            if arch.id == arch_id:
                return arch
        return None

    def restricted_to(self, name: str) -> Manifest:
        """Copy of this manifest keeping only artifacts called ``name``.

        A list with no match comes back empty.
        """
        return self.model_copy(
            update={
                "packages": [p for p in self.packages if p.name == name],
                "apps": [a for a in self.apps if a.name == name],
            }
        )
