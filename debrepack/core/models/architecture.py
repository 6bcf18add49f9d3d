"""
Architecture model — one processor target and its per-ecosystem names.

Upstream projects disagree on what to call the same CPU: Debian says
``arm64``, Ansible says ``aarch64``, some release pages say ``arm``.
Each ``Architecture`` carries every spelling a URL template may need.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Architecture(BaseModel):
    """A target architecture.

    ``deb`` is the name stamped into the package; ``variants`` maps an
    ecosystem key to that ecosystem's name for the same target and is
    exposed to URL templates as ``{{ <key>_architecture }}``.
    """

    id: str
    deb: str
    variants: dict[str, str] = Field(default_factory=dict)

    def template_names(self) -> dict[str, str]:
        """Template variable name → value for this architecture."""
        names = {f"{key}_architecture": value for key, value in self.variants.items()}
        names["deb_architecture"] = self.deb
        return names


def default_architectures() -> list[Architecture]:
    """The stock amd64 + arm64 table.

    Returned fresh on each call; callers pass it into the orchestrator.
    """
    return [
        Architecture(
            id="amd64",
            deb="amd64",
            variants={"ansible": "x86_64", "vale": "64-bit", "git_absorb": "x86_64"},
        ),
        Architecture(
            id="arm64",
            deb="arm64",
            variants={"ansible": "aarch64", "vale": "arm64", "git_absorb": "arm"},
        ),
    ]
