"""
Package builder invoker — shells out to dpkg-deb.

The builder is run as ``[wrapper] + command + [staging_root, output]``,
by default ``fakeroot dpkg-deb --build <root> <out>.deb`` so files are
owned by root inside the package without running as root. Output is
streamed line by line as it arrives and also kept for the error.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from debrepack.core.errors import BuildError

logger = logging.getLogger(__name__)

# Lines printed by the builder process; the console indents these under
# the pair being built
output_logger = logging.getLogger(f"{__name__}.output")

LogCallback = Callable[[str], None] | None


class PackageBuilder:
    """Run the external package builder for one staging tree."""

    def __init__(
        self,
        command: Sequence[str] = ("dpkg-deb", "--build"),
        privilege_wrapper: str = "fakeroot",
    ) -> None:
        if not command:
            raise ValueError("builder command must not be empty")
        self.command = list(command)
        self.privilege_wrapper = privilege_wrapper

    def argv(self, staging_root: Path, output: Path) -> list[str]:
        """Full command line for one build."""
        prefix = [self.privilege_wrapper] if self.privilege_wrapper else []
        return prefix + self.command + [str(staging_root), str(output)]

    def build(
        self,
        staging_root: Path,
        output: Path,
        log_callback: LogCallback = None,
    ) -> Path:
        """Build ``output`` from ``staging_root``.

        Raises:
            BuildError: The executable is missing or exits non-zero.
        """
        cmd = self.argv(staging_root, output)
        if shutil.which(cmd[0]) is None:
            raise BuildError(f"Package builder not found on PATH: {cmd[0]}")

        output.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Running command: %s", " ".join(cmd))
        start = time.monotonic()

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )

        output_lines: list[str] = []
        assert process.stdout is not None
        with process.stdout:
            for line in iter(process.stdout.readline, ""):
                stripped = line.rstrip("\n")
                output_lines.append(stripped)
                if stripped:
                    output_logger.info(stripped)
                    if log_callback:
                        log_callback(stripped)

        returncode = process.wait()
        elapsed_ms = int((time.monotonic() - start) * 1000)

        if returncode != 0:
            joined = "\n".join(output_lines)
            raise BuildError(
                f"Package builder failed with exit code {returncode}: {' '.join(cmd)}"
                + (f"\n{joined}" if joined else ""),
                returncode=returncode,
                output=joined,
            )

        logger.info("Built %s in %dms", output.name, elapsed_ms)
        return output
