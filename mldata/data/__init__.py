"""Dataset registry, cache and loader."""

# Ensure built-in datasets register themselves when the package is imported.
from . import openml_auto_mpg as _openml_auto_mpg  # noqa: F401
from . import openml_iris as _openml_iris  # noqa: F401
from . import uci_auto_mpg as _uci_auto_mpg  # noqa: F401
from . import uci_iris as _uci_iris  # noqa: F401
from . import uci_optdigits as _uci_optdigits  # noqa: F401
from .cache import CacheManifest, ensure_local
from .dataset import LoadedDataset
from .loader import DatasetLoader, LoaderConfig, load_dataset, load_info
from .parsers import parse_arff, parse_delimited
from .registry import (
    DatasetDescriptor,
    DatasetSpec,
    FileEntry,
    TargetSpec,
    available_datasets,
    get_dataset_spec,
    get_descriptor,
    register_dataset,
)
from .utils import resolve_cache_dir, user_data_dir

__all__ = [
    "CacheManifest",
    "DatasetDescriptor",
    "DatasetLoader",
    "DatasetSpec",
    "FileEntry",
    "LoadedDataset",
    "LoaderConfig",
    "TargetSpec",
    "available_datasets",
    "ensure_local",
    "get_dataset_spec",
    "get_descriptor",
    "load_dataset",
    "load_info",
    "parse_arff",
    "parse_delimited",
    "register_dataset",
    "resolve_cache_dir",
    "user_data_dir",
]
