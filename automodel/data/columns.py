# automodel/data/columns.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import pandas as pd


class ColumnType(Enum):
    continuous = "continuous"
    nominal = "nominal"
    ordinal = "ordinal"


class ColumnRole(Enum):
    input = "input"
    predicted = "predicted"
    ignored = "ignored"


@dataclass
class ColumnDefinition:
    """Describes one source column of a dataset.

    ``name``, ``data_type`` and ``role`` are fixed once the dataset is described;
    the remaining fields are statistics filled in by ``VersatileDataset.analyze``.
    """
    name: str
    data_type: ColumnType
    role: ColumnRole = ColumnRole.ignored
    classes: List[str] = field(default_factory=list)
    low: Optional[float] = None
    high: Optional[float] = None
    mean: Optional[float] = None
    sd: Optional[float] = None
    mode: Optional[str] = None
    count: int = 0
    missing: int = 0

    @property
    def is_categorical(self) -> bool:
        return self.data_type in (ColumnType.nominal, ColumnType.ordinal)

    def analyze(self, values: pd.Series):
        """Collect the statistics the normalizers need"""
        present = values.dropna()
        self.count = int(present.shape[0])
        self.missing = int(values.shape[0]) - self.count

        if self.is_categorical:
            labels = present.astype(str)
            self.classes = sorted(labels.unique().tolist())
            # most frequent class, ties broken alphabetically
            self.mode = labels.mode().iloc[0] if self.count else None
        else:
            numeric = pd.to_numeric(present)
            self.low = float(numeric.min())
            self.high = float(numeric.max())
            self.mean = float(numeric.mean())
            self.sd = float(numeric.std(ddof=0))


def infer_column_type(values: pd.Series) -> ColumnType:
    """Guess a column's data type from its pandas dtype"""
    if pd.api.types.is_bool_dtype(values) or not pd.api.types.is_numeric_dtype(values):
        return ColumnType.nominal
    return ColumnType.continuous
