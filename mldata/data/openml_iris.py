"""The Iris data set as published by OpenML (data id 61), in ARFF format."""

from __future__ import annotations

from ..core.types import CATEGORICAL, CLASSIFICATION, Column
from .parsers import parse_arff
from .registry import DatasetDescriptor, FileEntry, TargetSpec, register_dataset
from .uci_iris import SPECIES

OPENML_IRIS = DatasetDescriptor(
    name="openml_iris",
    files=(
        FileEntry(
            url="https://www.openml.org/data/download/61/dataset_61_iris.arff",
            filename="dataset_61_iris.arff",
        ),
    ),
    columns=(
        Column("sepallength"),
        Column("sepalwidth"),
        Column("petallength"),
        Column("petalwidth"),
        Column("class", CATEGORICAL, levels=SPECIES),
    ),
    target=TargetSpec(columns=("class",), task=CLASSIFICATION),
    n_samples=150,
    description="Iris plants from OpenML, ARFF encoded (classification).",
    source="OpenML",
)

register_dataset(OPENML_IRIS, parse_arff)

__all__ = ["OPENML_IRIS"]
