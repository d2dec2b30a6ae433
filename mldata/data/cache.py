"""Download-once cache management for dataset files.

Every file lands in the cache through the same protocol: the body is streamed
into a uniquely named ``.part`` file beside the target and only moved over the
target name with :func:`os.replace` once the transfer is complete and
verified.  Readers never open ``.part`` files, so processes sharing a cache
directory observe either the previous complete file or the new one.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import tempfile
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableMapping

from ..core.errors import FetchError, IntegrityError, IoError, NotCachedError
from .registry import FileEntry
from .utils import checksum_matches, ensure_dir, new_hasher, split_checksum

logger = logging.getLogger(__name__)

MANIFEST_NAME = ".manifest.json"
PARTIAL_SUFFIX = ".part"
CHUNK_SIZE = 1 << 16
DEFAULT_TIMEOUT = 60.0


def _atomic_write_text(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f"{path.name}.", suffix=PARTIAL_SUFFIX
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@dataclass
class CacheManifest:
    """Provenance of the files downloaded into one dataset directory.

    The manifest is informational: validity of a cached file is decided by
    its presence and checksum alone.
    """

    directory: Path
    data: MutableMapping[str, Mapping[str, object]] = field(
        init=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self._path = self.directory / MANIFEST_NAME
        self.data = self._read()

    def _read(self) -> MutableMapping[str, Mapping[str, object]]:
        if not self._path.exists():
            return {}
        try:
            loaded = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable cache manifest %s", self._path)
            return {}
        return loaded if isinstance(loaded, dict) else {}

    def record(self, filename: str, metadata: Mapping[str, object]) -> None:
        snapshot = dict(metadata)
        snapshot.setdefault(
            "recorded_at", time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        )
        # Re-read so records written by other processes since we loaded survive.
        self.data = self._read()
        self.data[filename] = snapshot
        try:
            _atomic_write_text(
                self._path, json.dumps(self.data, indent=2, sort_keys=True)
            )
        except OSError as exc:
            raise IoError(f"Cannot write cache manifest {str(self._path)!r}: {exc}") from exc

    def get(self, filename: str) -> Mapping[str, object] | None:
        return self.data.get(filename)

    def snapshot(self) -> dict[str, Mapping[str, object]]:
        return {name: dict(record) for name, record in self._read().items()}


def _open_url(url: str, timeout: float):
    return urllib.request.urlopen(url, timeout=timeout)


def ensure_local(
    root: str | Path,
    entry: FileEntry,
    *,
    verify: bool = True,
    download: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    manifest: CacheManifest | None = None,
) -> Path:
    """Make sure ``entry`` is present and valid under ``root``; return its path.

    A present file that passes verification is returned without touching the
    network.  Otherwise the file is downloaded (unless ``download`` is off)
    and atomically moved into place.
    """

    root = ensure_dir(Path(root))
    target = root / entry.filename
    checksum = entry.checksum if verify else None

    if target.is_file():
        if checksum is None or checksum_matches(target, checksum):
            logger.debug("Cache hit for %s", target)
            return target
        if not download:
            raise IntegrityError(
                f"Cached file {str(target)!r} does not match checksum {entry.checksum}"
            )
        logger.warning("Cached file %s failed verification; fetching again", target)
    elif not download:
        raise NotCachedError(
            f"{entry.filename!r} is not cached in {str(root)!r} and network access is disabled"
        )

    digest, size = _download(entry.url, target, checksum=checksum, timeout=timeout)
    if manifest is not None:
        manifest.record(
            entry.filename,
            {"url": entry.url, "checksum": digest, "size": size},
        )
    return target


def _download(
    url: str,
    target: Path,
    *,
    checksum: str | None,
    timeout: float,
) -> tuple[str, int]:
    """Stream ``url`` into a temp file beside ``target`` and rename it over ``target``."""

    logger.info("Downloading %s -> %s", url, target)
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=PARTIAL_SUFFIX
        )
    except OSError as exc:
        raise IoError(f"Cannot create a temporary file in {str(target.parent)!r}: {exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        digest = new_hasher(checksum)
        with os.fdopen(fd, "wb") as handle:
            size = _transfer(url, handle, digest, timeout)
        hexdigest = digest.hexdigest()
        if checksum is not None and hexdigest != split_checksum(checksum)[1]:
            raise IntegrityError(
                f"Checksum mismatch for {url!r}: got {hexdigest}, expected {checksum}"
            )
        try:
            os.replace(tmp_path, target)
        except OSError as exc:
            raise IoError(f"Cannot move download into {str(target)!r}: {exc}") from exc
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.info("Cached %s (%d bytes)", target.name, size)
    return hexdigest, size


def _transfer(url: str, handle, digest, timeout: float) -> int:
    size = 0
    try:
        with _open_url(url, timeout) as response:
            status = getattr(response, "status", None) or response.getcode()
            if not 200 <= int(status) < 300:
                raise FetchError(f"Failed to fetch {url!r}: HTTP status {status}")
            expected = response.headers.get("Content-Length")
            for chunk in iter(lambda: response.read(CHUNK_SIZE), b""):
                try:
                    handle.write(chunk)
                except OSError as exc:
                    raise IoError(f"Cannot write download of {url!r}: {exc}") from exc
                digest.update(chunk)
                size += len(chunk)
    except urllib.error.HTTPError as exc:
        raise FetchError(f"Failed to fetch {url!r}: HTTP status {exc.code}") from exc
    except (OSError, ValueError, http.client.HTTPException) as exc:
        # ValueError: urlopen rejects malformed or unsupported URLs.
        raise FetchError(f"Failed to fetch {url!r}: {exc}") from exc

    if expected is not None and expected.isdigit() and int(expected) != size:
        raise FetchError(
            f"Incomplete download of {url!r}: received {size} of {expected} bytes"
        )
    return size


__all__ = ["CacheManifest", "MANIFEST_NAME", "PARTIAL_SUFFIX", "ensure_local"]
