"""
Shared test fixtures and configuration.

Network access is replaced by ``FakeOpener`` (injected into
``DownloadCache``); dpkg-deb is replaced by a small Python script run
through the real ``PackageBuilder`` subprocess path.
"""

import io
import sys
import tarfile
import urllib.error
from pathlib import Path

import pytest

from debrepack.core.engine.pipeline import PipelineContext
from debrepack.core.models.architecture import default_architectures
from debrepack.core.models.manifest import BuildSettings
from debrepack.core.services.builder import PackageBuilder
from debrepack.core.services.download import DownloadCache

# Copies DEBIAN/control into the output so tests can inspect it
BUILDER_SCRIPT = (
    "import pathlib, sys; "
    "root = pathlib.Path(sys.argv[1]); "
    "out = pathlib.Path(sys.argv[2]); "
    "out.write_bytes((root / 'DEBIAN' / 'control').read_bytes()); "
    "print('dpkg-deb: building package in ' + out.name)"
)

FAILING_SCRIPT = "import sys; print('dpkg-deb: error: broken tree'); sys.exit(2)"


class FakeResponse:
    """Minimal stand-in for the object ``urlopen`` returns."""

    def __init__(self, body: bytes, status: int = 200):
        self._buf = io.BytesIO(body)
        self.status = status

    def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)

    def getcode(self) -> int:
        return self.status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._buf.close()
        return False


class FakeOpener:
    """``urlopen`` replacement serving bodies from a dict.

    A route mapped to an int answers with that status; unknown URLs
    answer 404 the way urllib does, by raising ``HTTPError``.
    """

    def __init__(self, routes: dict | None = None):
        self.routes: dict = dict(routes or {})
        self.calls: list[str] = []
        self.timeouts: list[float] = []
        self.user_agents: list[str] = []

    def __call__(self, request, timeout=None):
        url = request.full_url
        self.calls.append(url)
        self.timeouts.append(timeout)
        self.user_agents.append(request.get_header("User-agent"))

        body = self.routes.get(url, 404)
        if isinstance(body, Exception):
            raise body
        if isinstance(body, int):
            if body >= 400:
                raise urllib.error.HTTPError(url, body, "Not Found", None, None)
            return FakeResponse(b"", status=body)
        return FakeResponse(body)


def make_tarball(
    path: Path,
    files: dict,
    modes: dict | None = None,
    symlinks: dict | None = None,
) -> Path:
    """Write a tar archive compressed according to ``path``'s suffix.

    ``files`` maps member names to bytes, or to None for a directory.
    """
    modes = modes or {}
    compression = "xz" if path.name.endswith((".tar.xz", ".txz")) else "gz"
    path.parent.mkdir(parents=True, exist_ok=True)

    with tarfile.open(path, f"w:{compression}") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = modes.get(name, 0o755)
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = modes.get(name, 0o644)
                tar.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
    return path


def tarball_bytes(tmp_path: Path, name: str, files: dict, **kwargs) -> bytes:
    """Archive bytes, for serving through ``FakeOpener``."""
    return make_tarball(tmp_path / "_archives" / name, files, **kwargs).read_bytes()


@pytest.fixture
def amd64():
    return default_architectures()[0]


@pytest.fixture
def arm64():
    return default_architectures()[1]


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def downloader(opener: FakeOpener) -> DownloadCache:
    return DownloadCache(timeout=5.0, opener=opener)


@pytest.fixture
def stub_builder() -> PackageBuilder:
    """Builder that succeeds and copies the control file to the output."""
    return PackageBuilder(command=[sys.executable, "-c", BUILDER_SCRIPT], privilege_wrapper="")


@pytest.fixture
def failing_builder() -> PackageBuilder:
    return PackageBuilder(command=[sys.executable, "-c", FAILING_SCRIPT], privilege_wrapper="")


@pytest.fixture
def make_context(tmp_path: Path, downloader: DownloadCache, stub_builder: PackageBuilder):
    """Factory for a PipelineContext rooted in tmp_path."""

    def _make(**settings) -> PipelineContext:
        return PipelineContext(
            work_dir=tmp_path / "work",
            output_dir=tmp_path / "dist",
            settings=BuildSettings(**settings),
            downloader=downloader,
            builder=stub_builder,
        )

    return _make


@pytest.fixture
def tarball():
    """Factory writing a compressed tar archive; see ``make_tarball``."""
    return make_tarball


@pytest.fixture
def archive_bytes(tmp_path: Path):
    """Factory returning archive bytes to serve through ``FakeOpener``."""

    def _make(name: str, files: dict, **kwargs) -> bytes:
        return tarball_bytes(tmp_path, name, files, **kwargs)

    return _make


@pytest.fixture
def builder_argv() -> list[str]:
    """``settings.builder`` value that runs the stub builder script."""
    return [sys.executable, "-c", BUILDER_SCRIPT]
