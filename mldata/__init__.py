"""mldata public API."""

from .core import errors, types  # noqa: F401
from .core.errors import (
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
from .core.types import Column, DatasetInfo, Sample
from .data import (
    DatasetDescriptor,
    DatasetLoader,
    FileEntry,
    LoadedDataset,
    LoaderConfig,
    TargetSpec,
    available_datasets,
    load_dataset,
    load_info,
    register_dataset,
)

__version__ = "0.3.0"

__all__ = [
    "Column",
    "ConfigError",
    "DatasetDescriptor",
    "DatasetInfo",
    "DatasetLoader",
    "FetchError",
    "FileEntry",
    "IntegrityError",
    "IoError",
    "LoadError",
    "LoadedDataset",
    "LoaderConfig",
    "MLDataError",
    "NotCachedError",
    "ParseError",
    "Sample",
    "SampleIndexError",
    "TargetSpec",
    "available_datasets",
    "errors",
    "load_dataset",
    "load_info",
    "register_dataset",
    "types",
]
