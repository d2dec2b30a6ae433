"""Loader configuration and orchestration.

Typical use::

    from mldata import LoaderConfig

    loader = LoaderConfig("uci_iris").with_cache_dir("/tmp/data").create()
    dataset = loader.load_data()
    features, target = dataset.get_sample(0)

The loader pairs the resolved cache directory with the registered descriptor
and parser of one dataset.  It keeps no state beyond its configuration, so
calling :meth:`DatasetLoader.load_data` twice re-validates the cache but never
downloads a file that is already valid.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Optional

from ..core.errors import ConfigError, IoError, ParseError
from ..core.types import DatasetInfo
from .cache import DEFAULT_TIMEOUT, CacheManifest, ensure_local
from .dataset import LoadedDataset
from .registry import DatasetSpec, FileEntry, get_dataset_spec
from .utils import ensure_dir, offline_by_default, resolve_cache_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoaderConfig:
    """Builder-style configuration of a :class:`DatasetLoader`.

    Attributes
    ----------
    dataset:
        Registered dataset name.
    cache_dir:
        Cache root override.  ``None`` uses ``$MLDATA_HOME`` or the platform
        user-data directory.
    verify_checksums:
        Check declared checksums of cached and downloaded files.  Disabling it
        skips hashing and trusts whatever file is present.
    download:
        Allow network access on a cache miss.  ``None`` reads
        ``$MLDATA_OFFLINE`` (``"1"`` disables downloads).
    timeout:
        Socket timeout in seconds for each download.
    """

    dataset: str
    cache_dir: Optional[str | Path] = None
    verify_checksums: bool = True
    download: Optional[bool] = None
    timeout: float = DEFAULT_TIMEOUT

    def with_cache_dir(self, cache_dir: str | Path | None) -> "LoaderConfig":
        return replace(self, cache_dir=cache_dir)

    def with_checksums(self, enabled: bool = True) -> "LoaderConfig":
        return replace(self, verify_checksums=enabled)

    def with_download(self, enabled: bool = True) -> "LoaderConfig":
        return replace(self, download=enabled)

    def with_timeout(self, seconds: float) -> "LoaderConfig":
        return replace(self, timeout=seconds)

    def create(self) -> "DatasetLoader":
        """Validate the configuration and fix the cache directory."""

        try:
            spec = get_dataset_spec(self.dataset)
        except KeyError:
            raise ConfigError(f"Unknown dataset: {self.dataset!r}") from None
        if not isinstance(self.verify_checksums, bool):
            raise ConfigError("verify_checksums must be a bool")
        if self.download is not None and not isinstance(self.download, bool):
            raise ConfigError("download must be a bool or None")
        try:
            timeout = float(self.timeout)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid timeout: {self.timeout!r}") from None
        if not timeout > 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout!r}")

        download = (not offline_by_default()) if self.download is None else self.download
        try:
            root = resolve_cache_dir(self.cache_dir)
            directory = ensure_dir(root / spec.name)
        except IoError as exc:
            raise ConfigError(f"Unusable cache directory: {exc}") from exc
        if download and not os.access(directory, os.W_OK | os.X_OK):
            raise ConfigError(f"Cache directory {str(directory)!r} is not writable")

        return DatasetLoader(
            spec,
            directory,
            verify_checksums=self.verify_checksums,
            download=download,
            timeout=timeout,
        )


class DatasetLoader:
    """Fetches the files of one dataset on demand and hands them to its parser."""

    def __init__(
        self,
        spec: DatasetSpec,
        directory: Path,
        *,
        verify_checksums: bool = True,
        download: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._spec = spec
        self._directory = Path(directory)
        self._verify = verify_checksums
        self._download = download
        self._timeout = timeout

    def __repr__(self) -> str:
        return (
            f"DatasetLoader(dataset={self._spec.name!r}, directory={str(self._directory)!r}, "
            f"verify_checksums={self._verify}, download={self._download})"
        )

    @property
    def descriptor(self):
        return self._spec.descriptor

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def download_enabled(self) -> bool:
        return self._download

    def local_paths(self) -> List[Path]:
        """Target paths of every descriptor file, present or not."""

        return [self._directory / entry.filename for entry in self.descriptor.files]

    def _ensure(self, entries: tuple[FileEntry, ...]) -> List[Path]:
        manifest = CacheManifest(self._directory) if self._download else None
        return [
            ensure_local(
                self._directory,
                entry,
                verify=self._verify,
                download=self._download,
                timeout=self._timeout,
                manifest=manifest,
            )
            for entry in entries
        ]

    def _data_entries(self, split: str | None) -> tuple[FileEntry, ...]:
        entries = self.descriptor.data_files
        if split is None:
            return entries
        if split not in self.descriptor.splits:
            raise ConfigError(
                f"Unknown split {split!r} for {self._spec.name!r}; "
                f"available: {list(self.descriptor.splits)}"
            )
        return tuple(entry for entry in entries if entry.split == split)

    def _parse(self, entries: tuple[FileEntry, ...]) -> LoadedDataset:
        paths = [self._directory / entry.filename for entry in entries]
        dataset = self._spec.parser(paths, self.descriptor)
        if not isinstance(dataset, LoadedDataset):
            raise ParseError(
                f"Parser for {self._spec.name!r} returned {type(dataset).__name__}"
            )
        return dataset

    def load_info(self) -> DatasetInfo:
        """Ensure every file is cached and summarise the dataset.

        The sample count comes from the descriptor when it declares one;
        otherwise the data files are parsed to count samples.
        """

        self._ensure(self.descriptor.files)
        descriptor = self.descriptor
        n_samples = descriptor.n_samples
        if n_samples is None:
            n_samples = self._parse(descriptor.data_files).n_samples()
        return DatasetInfo(
            name=descriptor.name,
            n_samples=int(n_samples),
            columns=descriptor.columns,
            feature_columns=tuple(c.name for c in descriptor.feature_columns),
            target_columns=tuple(descriptor.target.columns),
            task=descriptor.target.task,
            splits=descriptor.splits,
            description=descriptor.description,
            source=descriptor.source,
            documentation=self._documentation(),
            provenance=CacheManifest(self._directory).snapshot(),
        )

    def _documentation(self) -> str:
        texts = []
        for entry in self.descriptor.info_files:
            path = self._directory / entry.filename
            try:
                texts.append(path.read_text(encoding="utf-8", errors="replace"))
            except OSError as exc:
                raise IoError(f"Cannot read {str(path)!r}: {exc}") from exc
        return "\n".join(texts)

    def load_data(self, split: str | None = None) -> LoadedDataset:
        """Ensure every file is cached and parse the data files.

        ``split`` restricts parsing to the data files tagged with that split.
        """

        entries = self._data_entries(split)
        self._ensure(self.descriptor.files)
        dataset = self._parse(entries)
        logger.info(
            "Loaded %s%s: %d samples",
            self._spec.name,
            f" [{split}]" if split else "",
            dataset.n_samples(),
        )
        return dataset


def load_dataset(name: str, *, split: str | None = None, **options: Any) -> LoadedDataset:
    """Shortcut for ``LoaderConfig(name, **options).create().load_data(split)``."""

    return LoaderConfig(name, **options).create().load_data(split=split)


def load_info(name: str, **options: Any) -> DatasetInfo:
    """Shortcut for ``LoaderConfig(name, **options).create().load_info()``."""

    return LoaderConfig(name, **options).create().load_info()


__all__ = ["DatasetLoader", "LoaderConfig", "load_dataset", "load_info"]
