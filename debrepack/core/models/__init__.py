"""
Domain models — Pydantic types for debrepack.

All models are re-exported here for convenient access:

    from debrepack.core.models import AppSpec, Architecture, Manifest
"""

from debrepack.core.models.architecture import Architecture, default_architectures
from debrepack.core.models.artifact import AppSpec, ExtraFile, MoveRule, PackageSpec
from debrepack.core.models.manifest import BuildSettings, Manifest
from debrepack.core.models.result import BuildReport, PairResult, PairState

__all__ = [
    # architecture.py
    "Architecture",
    "default_architectures",
    # artifact.py
    "AppSpec",
    "ExtraFile",
    "MoveRule",
    "PackageSpec",
    # manifest.py
    "BuildSettings",
    "Manifest",
    # result.py
    "BuildReport",
    "PairResult",
    "PairState",
]
