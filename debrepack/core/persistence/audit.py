"""
Audit ledger — append-only build log.

Every build run appends one entry to an NDJSON (newline-delimited JSON)
file under the work directory, whether it succeeded or not. Entries
are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from debrepack.core.models.result import BuildReport

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""

    # What ran
    architectures: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)
    only: str | None = None

    # Results
    status: str = ""               # ok, partial, failed
    aborted: bool = False
    pairs_total: int = 0
    pairs_succeeded: int = 0
    pairs_failed: int = 0
    outputs: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    errors: list[str] = Field(default_factory=list)

    # Extensible context
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: BuildReport, **kwargs: Any) -> AuditEntry:
        """Summarize a build report."""
        return cls(
            status=report.status,
            aborted=report.aborted,
            pairs_total=report.total,
            pairs_succeeded=report.succeeded,
            pairs_failed=report.failed,
            outputs=report.outputs,
            duration_ms=sum(r.duration_ms for r in report.results),
            errors=[
                f"{r.artifact} ({r.architecture}): {r.error}"
                for r in report.results
                if r.error
            ],
            **kwargs,
        )


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file is created if it doesn't exist.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append an audit entry to the ledger."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"

        try:
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s", entry.operation_id)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)

        return entries


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"build-{now}-{short}"
