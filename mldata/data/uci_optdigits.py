"""Optical Recognition of Handwritten Digits from the UCI repository.

Registered as ``uci_optdigits_8x8``: this is the preprocessed variant, in
which each 32x32 bitmap is reduced to an 8x8 grid of counts in ``0..16``
and stored as 64 comma-separated integers followed by the digit.  The
original 32x32 bitmaps (``optdigits-orig.*.Z``, LZW compressed) are not
provided.  The archive ships a training and a testing file.
"""

from __future__ import annotations

from ..core.types import CATEGORICAL, CLASSIFICATION, Column
from .parsers import parse_delimited
from .registry import DatasetDescriptor, FileEntry, TargetSpec, register_dataset

BASE_URL = "https://archive.ics.uci.edu/ml/machine-learning-databases/optdigits/"
GRID = 8

PIXELS = tuple(Column(f"pixel_{row}{col}") for row in range(GRID) for col in range(GRID))
DIGITS = tuple(str(digit) for digit in range(10))

OPTDIGITS = DatasetDescriptor(
    name="uci_optdigits_8x8",
    files=(
        FileEntry(url=BASE_URL + "optdigits.tra", filename="optdigits.tra", split="train"),
        FileEntry(url=BASE_URL + "optdigits.tes", filename="optdigits.tes", split="test"),
        FileEntry(url=BASE_URL + "optdigits.names", filename="optdigits.names", role="info"),
    ),
    columns=PIXELS + (Column("digit", CATEGORICAL, levels=DIGITS),),
    target=TargetSpec(columns=("digit",), task=CLASSIFICATION),
    n_samples=3823 + 1797,
    description="8x8 block counts of handwritten digits 0-9 (classification).",
    source="UCI Machine Learning Repository",
)

register_dataset(OPTDIGITS, parse_delimited(","))

__all__ = ["DIGITS", "OPTDIGITS"]
