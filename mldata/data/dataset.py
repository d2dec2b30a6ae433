"""Immutable in-memory representation of a parsed dataset."""

from __future__ import annotations

import operator
from typing import Any, Iterator, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd

from ..core.errors import SampleIndexError
from ..core.types import CATEGORICAL, NO_TASK, NUMERIC, STRING, Array, DatasetInfo, Sample
from .registry import DatasetDescriptor

MISSING_CODE = -1


def _frozen_copy(values, dtype) -> Array:
    array = np.array(values, dtype=dtype)
    array.setflags(write=False)
    return array


class LoadedDataset:
    """A read-only table of samples in source order.

    Columns are stored column-major: float64 for numeric columns (NaN marks a
    declared missing value), int64 codes for categorical columns (``-1`` marks
    a missing value) and object arrays for string columns.  None of the arrays
    are writeable and no method mutates the table.
    """

    def __init__(
        self,
        descriptor: DatasetDescriptor,
        columns: Mapping[str, Array],
        categories: Mapping[str, Sequence[str]] | None = None,
        *,
        splits: Sequence[str] = (),
    ) -> None:
        categories = dict(categories or {})
        missing = [name for name in descriptor.column_names if name not in columns]
        if missing:
            raise ValueError(f"Missing column data for {missing}")
        lengths = {int(np.shape(columns[name])[0]) for name in descriptor.column_names}
        if len(lengths) > 1:
            raise ValueError(f"Columns of {descriptor.name!r} differ in length: {sorted(lengths)}")

        self._descriptor = descriptor
        self._n_samples = lengths.pop() if lengths else 0
        self._kinds = {c.name: c.kind for c in descriptor.columns}
        self._columns = {
            name: _frozen_copy(columns[name], _DTYPES[self._kinds[name]])
            for name in descriptor.column_names
        }
        self._categories = {
            c.name: tuple(categories.get(c.name, c.levels or ()))
            for c in descriptor.columns
            if c.kind == CATEGORICAL
        }
        self._feature_names = tuple(c.name for c in descriptor.feature_columns)
        self._target_names = tuple(descriptor.target.columns)
        self._info = DatasetInfo(
            name=descriptor.name,
            n_samples=self._n_samples,
            columns=descriptor.columns,
            feature_columns=self._feature_names,
            target_columns=self._target_names,
            task=descriptor.target.task,
            splits=tuple(splits),
            description=descriptor.description,
            source=descriptor.source,
        )

    def __repr__(self) -> str:
        return (
            f"LoadedDataset(name={self._descriptor.name!r}, "
            f"n_samples={self._n_samples}, task={self._descriptor.target.task!r})"
        )

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def descriptor(self) -> DatasetDescriptor:
        return self._descriptor

    def n_samples(self) -> int:
        return self._n_samples

    def info(self) -> DatasetInfo:
        return self._info

    def get_sample(self, index: int) -> Sample:
        """Return the sample at ``index``; negative indices are rejected."""

        index = operator.index(index)
        if index < 0 or index >= self._n_samples:
            raise SampleIndexError(
                f"Sample index {index} out of range for {self.name!r} "
                f"with {self._n_samples} samples"
            )
        features = tuple(self._cell(name, index) for name in self._feature_names)
        if self._descriptor.target.task == NO_TASK:
            target = None
        elif len(self._target_names) == 1:
            target = self._cell(self._target_names[0], index)
        else:
            target = tuple(self._cell(name, index) for name in self._target_names)
        return Sample(features=features, target=target)

    def _cell(self, name: str, index: int) -> Any:
        value = self._columns[name][index]
        kind = self._kinds[name]
        if kind == NUMERIC:
            return float(value)
        if kind == CATEGORICAL:
            return None if value == MISSING_CODE else int(value)
        return value

    def __len__(self) -> int:
        return self._n_samples

    def __getitem__(self, index: int) -> Sample:
        return self.get_sample(index)

    def __iter__(self) -> Iterator[Sample]:
        for index in range(self._n_samples):
            yield self.get_sample(index)

    def column(self, name: str) -> Array:
        """Return the read-only array backing column ``name``."""

        if name not in self._columns:
            raise KeyError(f"Unknown column {name!r} in {self.name!r}")
        return self._columns[name]

    def categories(self, name: str) -> Tuple[str, ...]:
        """Return the raw levels of categorical column ``name``, indexed by code."""

        if name not in self._categories:
            raise KeyError(f"Column {name!r} of {self.name!r} is not categorical")
        return self._categories[name]

    def to_canonical(self) -> tuple[Array, Array]:
        """Return ``(X, Y)`` float64 matrices with one row per sample.

        Numeric values are copied as-is and categorical columns contribute
        their codes (missing codes become NaN).  String columns are omitted.
        ``Y`` has no columns when the dataset has no target.
        """

        return self._matrix(self._feature_names), self._matrix(self._target_names)

    def _matrix(self, names: Sequence[str]) -> Array:
        blocks = []
        for name in names:
            kind = self._kinds[name]
            if kind == STRING:
                continue
            values = self._columns[name].astype(np.float64)
            if kind == CATEGORICAL:
                values[self._columns[name] == MISSING_CODE] = np.nan
            blocks.append(values)
        if not blocks:
            return np.empty((self._n_samples, 0), dtype=np.float64)
        return np.column_stack(blocks)

    def to_frame(self) -> pd.DataFrame:
        """Return a pandas copy of the table with categorical columns restored."""

        data = {}
        for name in self._descriptor.column_names:
            values = self._columns[name]
            if self._kinds[name] == CATEGORICAL:
                data[name] = pd.Categorical.from_codes(
                    values, categories=list(self._categories[name])
                )
            else:
                data[name] = values.copy()
        return pd.DataFrame(data, columns=list(self._descriptor.column_names))


_DTYPES = {NUMERIC: np.float64, CATEGORICAL: np.int64, STRING: object}


__all__ = ["LoadedDataset", "MISSING_CODE"]
