"""
Download cache — idempotent fetch of one URL to one file.

If the target file already exists the fetch is a no-op: no request is
made and the content is not checked for staleness. Otherwise the body
is streamed to a ``.part`` sibling and renamed into place once
complete, so an interrupted transfer never looks cached.
"""

from __future__ import annotations

import logging
import posixpath
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from debrepack.core.errors import NetworkError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

Opener = Callable[..., Any]


def url_filename(url: str, default: str = "download") -> str:
    """Last path segment of ``url``, percent-decoded."""
    name = posixpath.basename(unquote(urlsplit(url).path))
    return name or default


class DownloadCache:
    """Fetch URLs to disk, skipping any target that already exists.

    Args:
        timeout: Seconds allowed for connect and for each read.
        user_agent: ``User-Agent`` header sent with every request.
        opener: Callable with the ``urllib.request.urlopen`` signature.
            Injected by tests to count or fake requests.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        user_agent: str = "debrepack/1.0",
        opener: Opener | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._opener = opener or urllib.request.urlopen

    def fetch(self, directory: Path, filename: str, url: str) -> Path:
        """Ensure ``directory/filename`` holds the body of ``url``.

        Returns:
            Path to the cached file.

        Raises:
            NetworkError: On transport failure, timeout, or a non-2xx status.
        """
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / filename

        if target.exists():
            logger.debug("Cache hit: %s", target)
            return target

        logger.info("Downloading %s", url)
        partial = target.with_name(target.name + ".part")
        try:
            self._stream(url, partial)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        partial.replace(target)
        logger.debug("Saved %s (%d bytes)", target, target.stat().st_size)
        return target

    def _stream(self, url: str, dest: Path) -> None:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with self._opener(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", None) or resp.getcode()
                if not 200 <= status < 300:
                    raise NetworkError(url, "unexpected status", status=status)

                with open(dest, "wb") as f:
                    while True:
                        chunk = resp.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        f.write(chunk)
        except urllib.error.HTTPError as e:
            raise NetworkError(url, str(e.reason), status=e.code) from e
        except urllib.error.URLError as e:
            raise NetworkError(url, str(e.reason)) from e
        except TimeoutError as e:
            raise NetworkError(url, f"timed out after {self.timeout}s") from e
        except ConnectionError as e:
            raise NetworkError(url, str(e)) from e
