"""Exception hierarchy shared by the cache, loader and parsers."""

from __future__ import annotations

from pathlib import Path


class MLDataError(Exception):
    """Base class for every error raised by :mod:`mldata`."""


class ConfigError(MLDataError, ValueError):
    """Raised when a loader configuration cannot be honoured."""


class LoadError(MLDataError):
    """Raised when a dataset cannot be made available or parsed."""


class IoError(LoadError):
    """Raised when the local filesystem cannot be read or written."""


class FetchError(LoadError):
    """Raised when a remote resource cannot be transferred."""


class IntegrityError(LoadError):
    """Raised when a file does not match its expected checksum."""


class NotCachedError(LoadError):
    """Raised when a file is missing and network access is disabled."""


class ParseError(LoadError, ValueError):
    """Raised when raw content does not match the declared schema.

    ``row`` is the zero-based record index within ``path`` and ``column`` the
    schema column name; either may be ``None`` for file-level failures.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | Path | None = None,
        row: int | None = None,
        column: str | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.row = row
        self.column = column
        context = []
        if self.path is not None:
            context.append(f"file {self.path.name!r}")
        if row is not None:
            context.append(f"row {row}")
        if column is not None:
            context.append(f"column {column!r}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class SampleIndexError(MLDataError, IndexError):
    """Raised for sample indices outside ``[0, n_samples)``."""


__all__ = [
    "ConfigError",
    "FetchError",
    "IntegrityError",
    "IoError",
    "LoadError",
    "MLDataError",
    "NotCachedError",
    "ParseError",
    "SampleIndexError",
]
