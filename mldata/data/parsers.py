"""Parsers turning cached raw files into :class:`LoadedDataset` tables.

A parser is any callable ``parser(paths, descriptor) -> LoadedDataset``.  The
readers here only split files into records of raw cells; every cell then goes
through :func:`build_dataset`, which coerces it to the kind declared by the
descriptor and fails loudly with the record's file, row and column when it
cannot.

Categorical encoding is deterministic: a closed vocabulary (``levels``) maps
each level to its declared position, an open vocabulary maps levels to codes
in first-seen order over the files in descriptor order.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_right
from pathlib import Path
from typing import Any, List, Sequence, Tuple

import numpy as np
import pandas as pd

from ..core.errors import ParseError
from ..core.types import CATEGORICAL, NUMERIC, Column
from .dataset import MISSING_CODE, LoadedDataset
from .registry import DatasetDescriptor, Parser

logger = logging.getLogger(__name__)

WHITESPACE = r"\s+"
ARFF_MISSING = "?"
NUMBER = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?)", re.IGNORECASE
)
_FIELD_COUNT = re.compile(r"Expected (\d+) fields in line (\d+), saw (\d+)")


class _Records:
    """Raw cells of all records, column-major, with their file of origin."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = tuple(names)
        self.cells: dict[str, List[Any]] = {name: [] for name in names}
        self._starts: List[int] = []
        self._paths: List[Path] = []
        self.size = 0

    def extend(self, path: Path, frame: pd.DataFrame) -> None:
        self._starts.append(self.size)
        self._paths.append(path)
        for position, name in enumerate(self.names):
            self.cells[name].extend(frame.iloc[:, position].tolist())
        self.size += len(frame)

    def locate(self, index: int) -> Tuple[Path, int]:
        slot = bisect_right(self._starts, index) - 1
        return self._paths[slot], index - self._starts[slot]

    def error(self, message: str, index: int, column: str) -> ParseError:
        path, row = self.locate(index)
        return ParseError(message, path=path, row=row, column=column)


def _is_missing(value: Any, missing: frozenset) -> bool:
    return value is None or (isinstance(value, str) and value in missing)


def _coerce_numeric(records: _Records, column: Column, missing: frozenset) -> np.ndarray:
    raw = records.cells[column.name]
    absent = np.array([_is_missing(v, missing) for v in raw], dtype=bool)
    cells = pd.Series(raw, dtype=object)
    is_text = cells.map(lambda v: isinstance(v, str)).to_numpy(dtype=bool)
    # "nan" is only missing when declared; "1_000" is not a number here.
    literal = cells.astype(str).str.strip().str.fullmatch(NUMBER).to_numpy(dtype=bool)
    is_real = cells.map(lambda v: isinstance(v, (int, float)) and v == v).to_numpy(dtype=bool)
    valid = absent | (is_text & literal) | (~is_text & is_real)
    bad = np.flatnonzero(~valid)
    if bad.size:
        index = int(bad[0])
        raise records.error(f"Cannot parse {raw[index]!r} as a number", index, column.name)
    return cells.where(~absent, np.nan).to_numpy(dtype=object).astype(np.float64)


def _coerce_categorical(
    records: _Records, column: Column, missing: frozenset
) -> Tuple[np.ndarray, Tuple[str, ...]]:
    raw = [None if _is_missing(v, missing) else str(v) for v in records.cells[column.name]]
    if column.levels is not None:
        codes = pd.Categorical(raw, categories=list(column.levels)).codes.astype(np.int64)
        unknown = np.flatnonzero(
            (codes == MISSING_CODE) & np.array([v is not None for v in raw], dtype=bool)
        )
        if unknown.size:
            index = int(unknown[0])
            raise records.error(
                f"Unknown level {raw[index]!r}, expected one of {list(column.levels)}",
                index,
                column.name,
            )
        return codes, column.levels
    codes, uniques = pd.factorize(pd.Series(raw, dtype=object), sort=False)
    return codes.astype(np.int64), tuple(str(level) for level in uniques)


def _coerce_string(records: _Records, column: Column, missing: frozenset) -> np.ndarray:
    values = [None if _is_missing(v, missing) else str(v) for v in records.cells[column.name]]
    array = np.empty(len(values), dtype=object)
    array[:] = values
    return array


def build_dataset(
    records: _Records,
    descriptor: DatasetDescriptor,
    *,
    splits: Sequence[str] = (),
    missing: frozenset | None = None,
) -> LoadedDataset:
    """Coerce every raw cell of ``records`` and build the immutable table."""

    missing = descriptor.missing_values if missing is None else missing
    columns: dict[str, np.ndarray] = {}
    categories: dict[str, Tuple[str, ...]] = {}
    for column in descriptor.columns:
        if column.kind == NUMERIC:
            columns[column.name] = _coerce_numeric(records, column, missing)
        elif column.kind == CATEGORICAL:
            codes, levels = _coerce_categorical(records, column, missing)
            columns[column.name] = codes
            categories[column.name] = levels
        else:
            columns[column.name] = _coerce_string(records, column, missing)
    return LoadedDataset(descriptor, columns, categories, splits=splits)


def _splits_for(paths: Sequence[Path], descriptor: DatasetDescriptor) -> Tuple[str, ...]:
    by_name = {entry.filename: entry.split for entry in descriptor.data_files}
    seen: List[str] = []
    for path in paths:
        split = by_name.get(Path(path).name)
        if split is not None and split not in seen:
            seen.append(split)
    return tuple(seen)


def _read_delimited(path: Path, sep: str, n_columns: int) -> pd.DataFrame:
    options = {"sep": sep}
    if sep != WHITESPACE:
        options["skipinitialspace"] = True
    try:
        frame = pd.read_csv(
            path,
            header=None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            quotechar='"',
            encoding="utf-8",
            **options,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame([[None] * n_columns]).iloc[:0]
    except pd.errors.ParserError as exc:
        raise _field_count_error(path, exc, n_columns) from exc
    except (UnicodeDecodeError, ValueError) as exc:
        raise ParseError(f"Malformed record: {exc}", path=path) from exc
    except OSError as exc:
        raise ParseError(f"Cannot read file: {exc}", path=path) from exc

    if frame.shape[1] != n_columns:
        raise ParseError(
            f"Expected {n_columns} fields per record, found {frame.shape[1]}",
            path=path,
            row=0,
        )
    return frame


def _field_count_error(path: Path, exc: Exception, n_columns: int) -> ParseError:
    """Turn a tokenizer error into a ParseError located at the offending record."""

    match = _FIELD_COUNT.search(str(exc))
    if match is None:
        return ParseError(f"Malformed record: {exc}", path=path)
    expected, line, seen = (int(group) for group in match.groups())
    if expected != n_columns:
        # The first record set the field count and is the one off the schema.
        return ParseError(
            f"Expected {n_columns} fields per record, found {expected}", path=path, row=0
        )
    try:
        with path.open(encoding="utf-8") as handle:
            preceding = [next(handle, "") for _ in range(line - 1)]
    except (OSError, UnicodeDecodeError):
        row = None
    else:
        row = sum(1 for text in preceding if text.strip())
    return ParseError(
        f"Expected {n_columns} fields per record, found {seen}", path=path, row=row
    )


def _check_fields(path: Path, frame: pd.DataFrame, names: Sequence[str], missing: frozenset) -> None:
    # Short records are padded by pandas; a padded or empty cell is an error
    # unless the empty token is declared missing.
    for position, name in enumerate(names):
        cells = frame.iloc[:, position]
        absent = cells.isna().to_numpy(dtype=bool)
        if "" not in missing:
            absent = absent | (cells == "").to_numpy(dtype=bool)
        if absent.any():
            row = int(np.flatnonzero(absent)[0])
            raise ParseError("Missing field", path=path, row=row, column=name)


def parse_delimited(sep: str = ",") -> Parser:
    """Return a parser for delimiter-separated text files without a header.

    ``sep`` is a literal delimiter or ``r"\\s+"`` for runs of whitespace.
    Double-quoted fields may contain the delimiter.
    """

    def parser(paths: Sequence[Path], descriptor: DatasetDescriptor) -> LoadedDataset:
        names = descriptor.column_names
        records = _Records(names)
        for path in paths:
            path = Path(path)
            frame = _read_delimited(path, sep, len(names))
            _check_fields(path, frame, names, descriptor.missing_values)
            logger.debug("Read %d records from %s", len(frame), path)
            records.extend(path, frame)
        return build_dataset(records, descriptor, splits=_splits_for(paths, descriptor))

    parser.__name__ = f"parse_delimited({sep!r})"
    return parser


def _read_arff(path: Path, names: Sequence[str]) -> pd.DataFrame:
    from scipy.io import arff

    try:
        data, meta = arff.loadarff(str(path))
    except (arff.ArffError, NotImplementedError, ValueError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed ARFF content: {exc}", path=path) from exc
    except OSError as exc:
        raise ParseError(f"Cannot read file: {exc}", path=path) from exc

    attributes = [name.lower() for name in meta.names()]
    expected = [name.lower() for name in names]
    if attributes != expected:
        raise ParseError(
            f"ARFF attributes {meta.names()} do not match schema {list(names)}",
            path=path,
        )

    columns = {}
    for attribute in meta.names():
        kind, _ = meta[attribute]
        values = data[attribute]
        if kind == "nominal":
            cells = [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in values]
        elif kind == "numeric":
            cells = [None if np.isnan(v) else float(v) for v in values]
        else:
            raise ParseError(
                f"Unsupported ARFF attribute type {kind!r}", path=path, column=attribute
            )
        columns[attribute] = cells
    return pd.DataFrame(columns, columns=meta.names(), dtype=object)


def parse_arff(paths: Sequence[Path], descriptor: DatasetDescriptor) -> LoadedDataset:
    """Parse dense ARFF files; attribute names must match the schema."""

    names = descriptor.column_names
    records = _Records(names)
    for path in paths:
        path = Path(path)
        frame = _read_arff(path, names)
        logger.debug("Read %d records from %s", len(frame), path)
        records.extend(path, frame)
    missing = descriptor.missing_values | {ARFF_MISSING}
    return build_dataset(
        records, descriptor, splits=_splits_for(paths, descriptor), missing=missing
    )


__all__ = ["WHITESPACE", "build_dataset", "parse_arff", "parse_delimited"]
