"""Fisher's Iris data set from the UCI repository."""

from __future__ import annotations

from ..core.types import CATEGORICAL, CLASSIFICATION, Column
from .parsers import parse_delimited
from .registry import DatasetDescriptor, FileEntry, TargetSpec, register_dataset

BASE_URL = "https://archive.ics.uci.edu/ml/machine-learning-databases/iris/"
SPECIES = ("Iris-setosa", "Iris-versicolor", "Iris-virginica")

IRIS = DatasetDescriptor(
    name="uci_iris",
    files=(
        FileEntry(url=BASE_URL + "iris.data", filename="iris.data"),
        FileEntry(url=BASE_URL + "iris.names", filename="iris.names", role="info"),
    ),
    columns=(
        Column("sepal_length"),
        Column("sepal_width"),
        Column("petal_length"),
        Column("petal_width"),
        Column("species", CATEGORICAL, levels=SPECIES),
    ),
    target=TargetSpec(columns=("species",), task=CLASSIFICATION),
    n_samples=150,
    description="Iris plants: 4 measurements in cm, 3 species (classification).",
    source="UCI Machine Learning Repository",
)

register_dataset(IRIS, parse_delimited(","))

__all__ = ["IRIS", "SPECIES"]
