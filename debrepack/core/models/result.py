"""
Result models — what a pipeline run reports back.

A ``PairResult`` records the outcome of one (artifact, architecture)
pair. A ``BuildReport`` collects them for a whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PairState(str, Enum):
    """Pipeline states for one (artifact, architecture) pair."""

    IDLE = "idle"
    RESOLVING_URL = "resolving_url"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    RELOCATING = "relocating"
    FETCHING_EXTRAS = "fetching_extras"
    WRITING_CONTROL = "writing_control"
    BUILDING = "building"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (PairState.DONE, PairState.FAILED)


class PairResult(BaseModel):
    """Outcome of one pipeline instance."""

    artifact: str
    kind: Literal["package", "app"]
    architecture: str
    status: Literal["ok", "failed"] = "ok"

    states: list[PairState] = Field(default_factory=list)
    url: str = ""
    output: str | None = None
    error: str | None = None
    relocated: int = 0

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class BuildReport:
    """Result of running the orchestrator over a manifest."""

    results: list[PairResult] = field(default_factory=list)
    aborted: bool = False
    first_error: Exception | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    @property
    def outputs(self) -> list[str]:
        return [r.output for r in self.results if r.ok and r.output]

    def raise_for_failure(self) -> None:
        """Re-raise the first recorded failure, if any."""
        if self.first_error is not None:
            raise self.first_error

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "aborted": self.aborted,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.model_dump(mode="json") for r in self.results],
        }
