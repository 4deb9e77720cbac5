"""Shared fixtures and fakes for the chart tracker tests."""

import io
import tarfile
import threading
from datetime import UTC, datetime

import pytest
import yaml

from chart_tracker.error_collector import ErrorCollector
from chart_tracker.errors import UnrecognizedImageFormatError
from chart_tracker.models import ArchiveVersionRef, RepositoryContext
from chart_tracker.rate_limiter import UnlimitedLimiter
from chart_tracker.worker import Services

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_chart_archive(
    manifest: dict | None = None,
    files: dict[str, bytes | str] | None = None,
    chart_dir: str | None = None,
) -> bytes:
    """Build a gzip'd chart tarball in memory."""
    manifest = manifest if manifest is not None else {
        "apiVersion": "v2",
        "name": "foo",
        "version": "1.0.0",
    }
    chart_dir = chart_dir or str(manifest.get("name") or "chart")
    entries = {"Chart.yaml": yaml.safe_dump(manifest)}
    entries.update(files or {})

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in entries.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name=f"{chart_dir}/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeHTTPGetter:
    """HTTPGetter serving canned responses by url; unknown urls answer 404.

    A response may also be an exception instance, which is raised instead.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.requested: list[str] = []
        self._lock = threading.Lock()

    def get(self, url: str):
        with self._lock:
            self.requested.append(url)
        response = self.responses.get(url, FakeResponse(404))
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        pass


class InMemoryPackageManager:
    """Package manager keeping records by (name, version, repository id)."""

    def __init__(self, register_error: Exception | None = None):
        self.packages = {}
        self.registered = []
        self.unregistered = []
        self.register_error = register_error
        self._lock = threading.Lock()

    def register(self, record):
        if self.register_error is not None:
            raise self.register_error
        with self._lock:
            self.registered.append(record)
            self.packages[(record.name, record.version, record.repository.repository_id)] = record

    def unregister(self, key):
        with self._lock:
            self.unregistered.append(key)
            self.packages.pop((key.name, key.version, key.repository.repository_id), None)


class InMemoryImageStore:
    def __init__(self, error: Exception | None = None):
        self.images = {}
        self.error = error

    def save_image(self, data: bytes) -> str:
        if self.error is not None:
            raise self.error
        if not data.startswith(b"\x89PNG"):
            raise UnrecognizedImageFormatError("image: unknown format")
        image_id = f"image-{len(self.images) + 1}"
        self.images[image_id] = data
        return image_id


@pytest.fixture
def repository():
    return RepositoryContext(
        repository_id="repo-1",
        name="example",
        kind="helm",
        url="https://example.com/repo",
    )


@pytest.fixture
def services():
    return Services(
        package_manager=InMemoryPackageManager(),
        image_store=InMemoryImageStore(),
        error_collector=ErrorCollector(),
        rate_limiter=UnlimitedLimiter(),
    )


def make_chart_version(
    name: str = "foo",
    version: str = "1.0.0",
    urls: tuple[str, ...] = ("charts/foo-1.0.0.tgz",),
) -> ArchiveVersionRef:
    return ArchiveVersionRef(
        name=name,
        version=version,
        digest=f"sha256:{name}-{version}",
        urls=urls,
        created=datetime(2024, 1, 15, tzinfo=UTC),
    )
