"""Utility helpers for locating and hashing cached dataset files."""

from __future__ import annotations

import hashlib
import os
import sys
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath
from typing import Mapping

from ..core.errors import IoError

APP_NAME = "mldata"
CACHE_ENV = "MLDATA_HOME"
OFFLINE_ENV = "MLDATA_OFFLINE"
DEFAULT_HASH = "sha256"


def os_family(platform: str | None = None) -> str:
    """Map ``sys.platform`` style identifiers onto ``windows``/``darwin``/``unix``."""

    platform = platform or sys.platform
    if platform.startswith(("win", "cygwin", "msys")):
        return "windows"
    if platform == "darwin":
        return "darwin"
    return "unix"


def user_data_dir(family: str, environ: Mapping[str, str], home: PurePath) -> PurePath:
    """Return the per-user data directory for ``family``.

    Pure function of its arguments so it can be exercised for every platform
    from a single test run.
    """

    if family == "windows":
        local = environ.get("LOCALAPPDATA")
        if local:
            return PureWindowsPath(local) / APP_NAME
        return PureWindowsPath(home) / "AppData" / "Local" / APP_NAME
    if family == "darwin":
        return PurePosixPath(home) / "Library" / "Application Support" / APP_NAME
    xdg = environ.get("XDG_DATA_HOME")
    base = PurePosixPath(xdg) if xdg else PurePosixPath(home) / ".local" / "share"
    return base / APP_NAME


def default_cache_root() -> Path:
    """Return ``$MLDATA_HOME`` or the platform user-data directory."""

    env_dir = os.environ.get(CACHE_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path(user_data_dir(os_family(), os.environ, Path.home()))


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError(f"Cannot create cache directory {str(path)!r}: {exc}") from exc
    if not path.is_dir():
        raise IoError(f"Cache path {str(path)!r} exists and is not a directory")
    return path


def resolve_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Resolve the effective cache root and make sure it exists."""

    base = Path(cache_dir).expanduser() if cache_dir is not None else default_cache_root()
    return ensure_dir(base.absolute())


def offline_by_default() -> bool:
    return os.environ.get(OFFLINE_ENV, "0") == "1"


def split_checksum(checksum: str) -> tuple[str, str]:
    """Split ``"md5:abc"`` into ``("md5", "abc")``; bare digests are sha256."""

    algorithm, sep, digest = checksum.partition(":")
    if not sep:
        return DEFAULT_HASH, checksum.lower()
    return algorithm.lower(), digest.lower()


def new_hasher(checksum: str | None):
    algorithm = split_checksum(checksum)[0] if checksum else DEFAULT_HASH
    try:
        return hashlib.new(algorithm)
    except ValueError as exc:
        raise ValueError(f"Unsupported checksum algorithm: {algorithm}") from exc


def checksum_path(path: Path, checksum: str | None = None) -> str:
    """Hex digest of ``path`` using the algorithm named by ``checksum``."""

    digest = new_hasher(checksum)
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(8192), b""):
                digest.update(chunk)
    except OSError as exc:
        raise IoError(f"Cannot read cached file {str(path)!r}: {exc}") from exc
    return digest.hexdigest()


def checksum_matches(path: Path, checksum: str) -> bool:
    return checksum_path(path, checksum) == split_checksum(checksum)[1]
