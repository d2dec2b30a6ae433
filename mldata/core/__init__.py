"""Core contracts: value types and the error hierarchy."""

from . import errors, types  # noqa: F401
from .errors import (
    ConfigError,
    FetchError,
    IntegrityError,
    IoError,
    LoadError,
    MLDataError,
    NotCachedError,
    ParseError,
    SampleIndexError,
)
from .types import Column, DatasetInfo, Sample

__all__ = [
    "Column",
    "ConfigError",
    "DatasetInfo",
    "FetchError",
    "IntegrityError",
    "IoError",
    "LoadError",
    "MLDataError",
    "NotCachedError",
    "ParseError",
    "Sample",
    "SampleIndexError",
    "errors",
    "types",
]
