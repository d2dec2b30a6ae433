"""Shared fixtures: an isolated cache root and a fake HTTP transport."""

from __future__ import annotations

import hashlib
import io
import urllib.error

import pytest

from mldata.core.types import CATEGORICAL, CLASSIFICATION, Column
from mldata.data import cache, registry
from mldata.data.registry import DatasetDescriptor, FileEntry, TargetSpec


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200, length: int | None = None):
        self._stream = io.BytesIO(body)
        self.status = status
        declared = len(body) if length is None else length
        self.headers = {"Content-Length": str(declared)}

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def getcode(self) -> int:
        return self.status

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class FakeServer:
    """Stands in for ``urllib.request.urlopen`` and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[bytes, int, int | None]] = {}
        self.errors: dict[str, BaseException] = {}
        self.calls: list[str] = []

    def serve(self, url: str, body: bytes, *, status: int = 200, length: int | None = None) -> None:
        self.routes[url] = (body, status, length)
        self.errors.pop(url, None)

    def fail(self, url: str, error: BaseException) -> None:
        self.errors[url] = error

    def count(self, url: str) -> int:
        return self.calls.count(url)

    def __call__(self, url: str, timeout: float):
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        if url not in self.routes:
            raise urllib.error.HTTPError(url, 404, "Not Found", hdrs=None, fp=None)
        body, status, length = self.routes[url]
        return FakeResponse(body, status=status, length=length)


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    """Point the default cache root at a temp dir and enable downloads."""

    root = tmp_path / "mldata-home"
    monkeypatch.setenv("MLDATA_HOME", str(root))
    monkeypatch.delenv("MLDATA_OFFLINE", raising=False)
    return root


@pytest.fixture(autouse=True)
def scratch_registry(monkeypatch):
    """Datasets registered by a test disappear after it."""

    monkeypatch.setattr(registry, "_REGISTRY", dict(registry._REGISTRY))


@pytest.fixture
def fake_http(monkeypatch):
    server = FakeServer()
    monkeypatch.setattr(cache, "_open_url", server)
    return server


class Flowers:
    """A tiny three-column dataset served from a fake archive."""

    csv = b"5.1,3.5,red\n4.9,3.0,blue\n6.2,2.9,red\n5.9,3.1,green\n"
    rows = [
        ((5.1, 3.5), "red"),
        ((4.9, 3.0), "blue"),
        ((6.2, 2.9), "red"),
        ((5.9, 3.1), "green"),
    ]
    url = "https://example.org/flowers/flowers.csv"
    notes_url = "https://example.org/flowers/flowers.txt"

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.csv).hexdigest()

    def descriptor(
        self,
        name: str = "fixture_flowers",
        *,
        checksum: str | None = None,
        n_samples: int | None = None,
        levels: tuple[str, ...] | None = None,
        with_notes: bool = False,
    ) -> DatasetDescriptor:
        files = [FileEntry(url=self.url, filename="flowers.csv", checksum=checksum)]
        if with_notes:
            files.append(FileEntry(url=self.notes_url, filename="flowers.txt", role="info"))
        return DatasetDescriptor(
            name=name,
            files=tuple(files),
            columns=(
                Column("length"),
                Column("width"),
                Column("colour", CATEGORICAL, levels=levels),
            ),
            target=TargetSpec(columns=("colour",), task=CLASSIFICATION),
            n_samples=n_samples,
        )


@pytest.fixture
def flowers():
    return Flowers()
