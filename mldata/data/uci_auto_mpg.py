"""Auto MPG fuel consumption data set from the UCI repository.

Records are whitespace separated with a double-quoted car name; six
horsepower values are recorded as ``?``.
"""

from __future__ import annotations

from ..core.types import CATEGORICAL, REGRESSION, STRING, Column
from .parsers import WHITESPACE, parse_delimited
from .registry import DatasetDescriptor, FileEntry, TargetSpec, register_dataset

BASE_URL = "https://archive.ics.uci.edu/ml/machine-learning-databases/auto-mpg/"

AUTO_MPG = DatasetDescriptor(
    name="uci_auto_mpg",
    files=(
        FileEntry(url=BASE_URL + "auto-mpg.data", filename="auto-mpg.data"),
        FileEntry(url=BASE_URL + "auto-mpg.names", filename="auto-mpg.names", role="info"),
    ),
    columns=(
        Column("mpg"),
        Column("cylinders"),
        Column("displacement"),
        Column("horsepower"),
        Column("weight"),
        Column("acceleration"),
        Column("model_year"),
        # 1: USA, 2: Europe, 3: Japan
        Column("origin", CATEGORICAL, levels=("1", "2", "3")),
        Column("car_name", STRING),
    ),
    target=TargetSpec(columns=("mpg",), task=REGRESSION),
    n_samples=398,
    missing_values=frozenset({"?"}),
    description="City-cycle fuel consumption of 1970-82 cars (regression).",
    source="UCI Machine Learning Repository",
)

register_dataset(AUTO_MPG, parse_delimited(WHITESPACE))

__all__ = ["AUTO_MPG"]
