"""Dataset registry and descriptor contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Callable,
    FrozenSet,
    Iterable,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
)

from ..core.types import NO_TASK, TASK_KINDS, Column
from .utils import split_checksum

if TYPE_CHECKING:  # pragma: no cover
    from .dataset import LoadedDataset

DATA = "data"
INFO = "info"
FILE_ROLES = DATA, INFO


@dataclass(frozen=True)
class FileEntry:
    """A remote resource and the name it is cached under.

    ``checksum`` is a hex digest, sha256 unless prefixed with another
    :mod:`hashlib` algorithm name (``"md5:..."``).  ``role`` is ``"data"`` for
    files holding samples and ``"info"`` for documentation that is fetched but
    never parsed.
    """

    url: str
    filename: str
    checksum: Optional[str] = None
    role: str = DATA
    split: Optional[str] = None

    def __post_init__(self) -> None:
        if self.role not in FILE_ROLES:
            raise ValueError(f"Invalid file role for {self.filename!r}: {self.role}")
        name = self.filename
        if not name or name in {".", ".."} or Path(name).name != name or "\\" in name:
            raise ValueError(f"Cache filename must be a plain file name: {name!r}")
        if name.startswith("."):
            raise ValueError(f"Cache filenames starting with '.' are reserved: {name!r}")
        if self.checksum is not None:
            _, digest = split_checksum(self.checksum)
            if not digest:
                raise ValueError(f"Empty checksum for {name!r}")


@dataclass(frozen=True)
class TargetSpec:
    """Which columns form the label and what kind of task they define."""

    columns: Tuple[str, ...] = ()
    task: str = NO_TASK

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        if self.task not in TASK_KINDS:
            raise ValueError(f"Invalid task kind: {self.task}")
        if self.task == NO_TASK and self.columns:
            raise ValueError("A target for task 'none' must not name columns")
        if self.task != NO_TASK and not self.columns:
            raise ValueError(f"Task {self.task!r} requires at least one target column")


@dataclass(frozen=True)
class DatasetDescriptor:
    """Static, hand-authored metadata for one dataset.

    Attributes
    ----------
    name:
        Canonical name; also the cache sub-directory.
    files:
        Resources to fetch, data files in the order they are parsed.
    columns:
        Ordered schema of every record, target columns included.
    target:
        Label columns and task kind.
    n_samples:
        Declared sample count.  When set, :meth:`DatasetLoader.load_info`
        answers without parsing.
    missing_values:
        Raw tokens that denote a missing cell (NaN for numeric columns,
        ``None`` otherwise).  Anything else that fails coercion is an error.
    """

    name: str
    files: Tuple[FileEntry, ...]
    columns: Tuple[Column, ...]
    target: TargetSpec = field(default_factory=TargetSpec)
    n_samples: Optional[int] = None
    missing_values: FrozenSet[str] = frozenset()
    description: str = ""
    source: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "missing_values", frozenset(self.missing_values))
        _validate_descriptor(self)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def feature_columns(self) -> Tuple[Column, ...]:
        targets = set(self.target.columns)
        return tuple(c for c in self.columns if c.name not in targets)

    @property
    def target_columns(self) -> Tuple[Column, ...]:
        by_name = {c.name: c for c in self.columns}
        return tuple(by_name[name] for name in self.target.columns)

    @property
    def data_files(self) -> Tuple[FileEntry, ...]:
        return tuple(entry for entry in self.files if entry.role == DATA)

    @property
    def info_files(self) -> Tuple[FileEntry, ...]:
        return tuple(entry for entry in self.files if entry.role == INFO)

    @property
    def splits(self) -> Tuple[str, ...]:
        seen: list[str] = []
        for entry in self.data_files:
            if entry.split is not None and entry.split not in seen:
                seen.append(entry.split)
        return tuple(seen)


def _validate_descriptor(descriptor: DatasetDescriptor) -> None:
    name = descriptor.name
    if not name or Path(name).name != name or name.startswith("."):
        raise ValueError(f"Dataset name must be a plain directory name: {name!r}")
    if not descriptor.files:
        raise ValueError(f"Dataset {name!r} declares no files")
    filenames = [entry.filename for entry in descriptor.files]
    if len(set(filenames)) != len(filenames):
        raise ValueError(f"Dataset {name!r} declares duplicate filenames")
    if not descriptor.data_files:
        raise ValueError(f"Dataset {name!r} declares no data files")
    if not descriptor.columns:
        raise ValueError(f"Dataset {name!r} declares no columns")
    column_names = descriptor.column_names
    if len(set(column_names)) != len(column_names):
        raise ValueError(f"Dataset {name!r} declares duplicate column names")
    for target in descriptor.target.columns:
        if target not in column_names:
            raise ValueError(f"Target column {target!r} not in schema of {name!r}")
    if len(set(descriptor.target.columns)) != len(descriptor.target.columns):
        raise ValueError(f"Dataset {name!r} repeats a target column")
    if descriptor.n_samples is not None and descriptor.n_samples < 0:
        raise ValueError(f"Dataset {name!r} declares a negative sample count")


Parser = Callable[[Sequence[Path], DatasetDescriptor], "LoadedDataset"]


@dataclass(frozen=True)
class DatasetSpec:
    """A registered dataset: its descriptor paired with the parser for its format."""

    descriptor: DatasetDescriptor
    parser: Parser

    @property
    def name(self) -> str:
        return self.descriptor.name


_REGISTRY: MutableMapping[str, DatasetSpec] = {}


def register_dataset(
    descriptor: DatasetDescriptor,
    parser: Parser | None = None,
) -> Callable[[Parser], Parser] | Parser:
    """Register ``parser`` as the reader for ``descriptor``.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset(IRIS)
        def parse_iris(paths, descriptor):
            ...

    or directly::

        register_dataset(IRIS, parse_delimited(sep=","))

    Registering a name twice replaces the earlier entry.
    """

    def _decorator(func: Parser) -> Parser:
        _REGISTRY[descriptor.name] = DatasetSpec(descriptor=descriptor, parser=func)
        return func

    if parser is not None:
        return _decorator(parser)
    return _decorator


def get_dataset_spec(name: str) -> DatasetSpec:
    """Return the registered :class:`DatasetSpec` for ``name``."""

    if name not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {name}")
    return _REGISTRY[name]


def get_descriptor(name: str) -> DatasetDescriptor:
    return get_dataset_spec(name).descriptor


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


__all__ = [
    "DatasetDescriptor",
    "DatasetSpec",
    "FileEntry",
    "Parser",
    "TargetSpec",
    "available_datasets",
    "get_dataset_spec",
    "get_descriptor",
    "register_dataset",
]
