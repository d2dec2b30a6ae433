"""The Auto MPG data set as published by OpenML (data id 196), in ARFF format.

Unlike the UCI copy it carries no car names, stores ``mpg`` in the ``class``
attribute and declares cylinders, model year and origin as nominal
attributes; their levels are numbers and are read as numeric columns here.
"""

from __future__ import annotations

from ..core.types import REGRESSION, Column
from .parsers import parse_arff
from .registry import DatasetDescriptor, FileEntry, TargetSpec, register_dataset

OPENML_AUTO_MPG = DatasetDescriptor(
    name="openml_auto_mpg",
    files=(
        FileEntry(
            url="https://www.openml.org/data/download/3633/dataset_2182_autoMpg.arff",
            filename="dataset_2182_autoMpg.arff",
        ),
    ),
    columns=(
        Column("cylinders"),
        Column("displacement"),
        Column("horsepower"),
        Column("weight"),
        Column("acceleration"),
        Column("model"),
        Column("origin"),
        Column("class"),
    ),
    target=TargetSpec(columns=("class",), task=REGRESSION),
    n_samples=398,
    description="City-cycle fuel consumption of 1970-82 cars from OpenML (regression).",
    source="OpenML",
)

register_dataset(OPENML_AUTO_MPG, parse_arff)

__all__ = ["OPENML_AUTO_MPG"]
