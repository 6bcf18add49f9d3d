"""
Error hierarchy — every fatal pipeline condition is a ``RepackError``.

Services raise these; the build use case turns them into a result
with ``error`` set, and the CLI renders that and exits non-zero.
"""

from __future__ import annotations


class RepackError(Exception):
    """Base class for all debrepack failures."""


class NetworkError(RepackError):
    """A fetch failed or the server answered outside the 2xx range."""

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        if status is not None:
            super().__init__(f"Failed to download {url}: status code {status}")
        else:
            super().__init__(f"Failed to download {url}: {message}")


class ExtractionError(RepackError):
    """An archive could not be classified, decompressed, or read."""


class TemplateError(RepackError):
    """A URL still holds placeholders after resolution (strict mode only)."""


class RuleCompileError(RepackError):
    """A move rule's pattern is not a valid regular expression."""

    def __init__(self, artifact: str, index: int, pattern: str, reason: str) -> None:
        self.artifact = artifact
        self.index = index
        self.pattern = pattern
        super().__init__(
            f"{artifact}: move rule #{index} has an invalid pattern {pattern!r}: {reason}"
        )


class NoAssetsError(RepackError):
    """No move rule relocated any file for an (artifact, architecture) pair."""

    def __init__(self, artifact: str, architecture: str) -> None:
        self.artifact = artifact
        self.architecture = architecture
        super().__init__(
            f"No assets found for {artifact} ({architecture}): "
            "no move rule matched any file in the archive"
        )


class BuildError(RepackError):
    """The external package builder is missing or exited non-zero."""

    def __init__(self, message: str, returncode: int | None = None, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(message)
