"""
Artifact models — what to download and how to lay it out.

A ``PackageSpec`` is an upstream ``.deb`` that is shipped as-is.
An ``AppSpec`` is an upstream archive (or bare binary) that is
extracted, rearranged by its move rules, and built into a new package.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator


def _check_relative(value: str) -> str:
    """Reject destination paths that would escape the staging root."""
    if not value or not value.strip():
        raise ValueError("destination path must not be empty")
    path = PurePosixPath(value)
    if path.is_absolute():
        raise ValueError(f"destination path must be relative: {value!r}")
    if ".." in path.parts:
        raise ValueError(f"destination path must not contain '..': {value!r}")
    return value


def _parse_mode(value: object) -> int:
    """Accept ``0o755``/``493`` ints and ``"0755"``/``"755"`` strings."""
    if isinstance(value, bool):
        raise ValueError("mode must be an octal number, not a boolean")
    if isinstance(value, int):
        mode = value
    elif isinstance(value, str):
        text = value.strip().lower().removeprefix("0o")
        try:
            mode = int(text, 8)
        except ValueError as e:
            raise ValueError(f"mode must be an octal string like '0755': {value!r}") from e
    else:
        raise ValueError(f"unsupported mode value: {value!r}")
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"mode out of range: {oct(mode)}")
    return mode


class MoveRule(BaseModel):
    """Relocate every file whose relative path matches ``src_regex``.

    Rules run in declared order and are not exclusive: one file may
    be picked up by several rules.
    """

    src_regex: str
    dst: str
    mode: int = 0o644

    @field_validator("dst")
    @classmethod
    def _dst_relative(cls, v: str) -> str:
        return _check_relative(v)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_octal(cls, v: object) -> int:
        return _parse_mode(v)


class ExtraFile(BaseModel):
    """A supplementary file downloaded straight into the package tree."""

    url: str
    dst: str
    mode: int = 0o644

    @field_validator("dst")
    @classmethod
    def _dst_relative(cls, v: str) -> str:
        return _check_relative(v)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_octal(cls, v: object) -> int:
        return _parse_mode(v)


class PackageSpec(BaseModel):
    """An upstream package file copied verbatim for each architecture."""

    name: str
    url: str
    version: str

    @field_validator("version", mode="before")
    @classmethod
    def _version_str(cls, v: object) -> object:
        # YAML reads `version: 1.10` as a float
        return str(v) if isinstance(v, (int, float)) else v


class AppSpec(BaseModel):
    """An upstream release archive repackaged through move rules."""

    name: str
    url: str
    version: str
    description: str = ""

    urls: dict[str, str] = Field(default_factory=dict)     # arch id → URL template
    names: dict[str, str] = Field(default_factory=dict)    # arch id → package name

    move_rules: list[MoveRule] = Field(default_factory=list)
    extra_files: list[ExtraFile] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _version_str(cls, v: object) -> object:
        return str(v) if isinstance(v, (int, float)) else v

    def url_for(self, arch_id: str) -> str:
        """URL template for one architecture, honoring overrides."""
        return self.urls.get(arch_id, self.url)

    def name_for(self, arch_id: str) -> str:
        """Package name for one architecture, honoring overrides."""
        return self.names.get(arch_id, self.name)
