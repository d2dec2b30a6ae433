"""Core typing contracts for mldata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

Array = np.ndarray

NUMERIC = "numeric"
CATEGORICAL = "categorical"
STRING = "string"
COLUMN_KINDS = NUMERIC, CATEGORICAL, STRING

CLASSIFICATION = "classification"
REGRESSION = "regression"
NO_TASK = "none"
TASK_KINDS = CLASSIFICATION, REGRESSION, NO_TASK


@dataclass(frozen=True)
class Column:
    """A named, typed column of a dataset schema.

    ``levels`` declares a closed vocabulary for categorical columns; values
    outside it are rejected at parse time and codes follow its order.
    """

    name: str
    kind: str = NUMERIC
    levels: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if self.kind not in COLUMN_KINDS:
            raise ValueError(f"Invalid column kind for {self.name!r}: {self.kind}")
        if self.levels is not None:
            if self.kind != CATEGORICAL:
                raise ValueError(f"Only categorical columns declare levels: {self.name!r}")
            levels = tuple(str(level) for level in self.levels)
            if len(set(levels)) != len(levels):
                raise ValueError(f"Duplicate levels declared for {self.name!r}")
            object.__setattr__(self, "levels", levels)


@dataclass(frozen=True)
class Sample:
    """One record: the feature cells in schema order and the target value."""

    features: Tuple[Any, ...]
    target: Any

    def __iter__(self):
        # Allows ``features, target = dataset.get_sample(i)``.
        yield self.features
        yield self.target


@dataclass(frozen=True)
class DatasetInfo:
    """Read-only summary of a dataset.

    Attributes
    ----------
    name:
        Canonical dataset name, also the cache sub-directory.
    n_samples:
        Number of samples, declared by the descriptor or counted by parsing.
    columns:
        Full schema in source order, target columns included.
    feature_columns / target_columns:
        Column names split by role, each in schema order.
    task:
        One of ``{"classification", "regression", "none"}``.
    splits:
        Split tags of the data files, e.g. ``("train", "test")``.
    documentation:
        Text of the dataset's documentation files, when it ships any.
    provenance:
        Snapshot of the cache manifest for the dataset directory.
    """

    name: str
    n_samples: int
    columns: Tuple[Column, ...]
    feature_columns: Tuple[str, ...]
    target_columns: Tuple[str, ...]
    task: str
    splits: Tuple[str, ...] = ()
    description: str = ""
    source: str = ""
    documentation: str = ""
    provenance: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "n_samples": self.n_samples,
            "columns": [
                {"name": c.name, "kind": c.kind, "levels": list(c.levels or ())}
                for c in self.columns
            ],
            "feature_columns": list(self.feature_columns),
            "target_columns": list(self.target_columns),
            "task": self.task,
            "splits": list(self.splits),
            "description": self.description,
            "source": self.source,
            "provenance": dict(self.provenance),
        }
