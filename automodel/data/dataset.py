# automodel/data/dataset.py
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from automodel.data.columns import ColumnDefinition, ColumnRole, ColumnType, infer_column_type
from automodel.data.normalizers import NormalizationStrategy
from automodel.errors import InvalidArgumentError, OrderingViolationError

logger = logging.getLogger(__name__)


def make_random_source(seed: Optional[int] = None) -> np.random.RandomState:
    """Seeded Mersenne Twister generator used for every shuffle"""
    return np.random.RandomState(seed)


class MatrixDataset:
    """Read-only view over rows of a normalized matrix.

    The first ``input_count`` columns are model inputs, the next ``ideal_count``
    columns are the expected outputs. ``mask`` holds the parent row indices.
    """

    def __init__(self, data: np.ndarray, input_count: int, ideal_count: int,
                 mask: Optional[np.ndarray] = None):
        self.data = data
        self.input_count = input_count
        self.ideal_count = ideal_count
        self.mask = np.arange(data.shape[0]) if mask is None else np.asarray(mask, dtype=int)

    def __len__(self) -> int:
        return len(self.mask)

    @property
    def input(self) -> np.ndarray:
        return self.data[self.mask, :self.input_count]

    @property
    def ideal(self) -> np.ndarray:
        return self.data[self.mask, self.input_count:self.input_count + self.ideal_count]

    def subset(self, rows: Sequence[int]) -> 'MatrixDataset':
        """Rows are positions within this view, not parent indices"""
        return MatrixDataset(self.data, self.input_count, self.ideal_count, self.mask[np.asarray(rows, dtype=int)])

    def __repr__(self):
        return f"MatrixDataset(rows={len(self)}, inputs={self.input_count}, ideal={self.ideal_count})"


@dataclass
class DataDivision:
    """Requested share of a dataset; ``count`` and ``dataset`` are filled by ``divide``"""
    percent: float
    count: int = 0
    dataset: Optional[MatrixDataset] = None


class NormalizationHelper:
    """Tracks column roles and the normalization strategy applied to them"""

    def __init__(self):
        self.input_columns: List[ColumnDefinition] = []
        self.output_columns: List[ColumnDefinition] = []
        self.strategy: Optional[NormalizationStrategy] = None

    def set_strategy(self, strategy: NormalizationStrategy):
        self.strategy = strategy

    def _require_strategy(self) -> NormalizationStrategy:
        if self.strategy is None:
            raise OrderingViolationError(
                "No normalization strategy set. Please call select_method first."
            )
        return self.strategy

    def calculate_normalized_input_count(self) -> int:
        strategy = self._require_strategy()
        return sum(strategy.normalized_size(col, True) for col in self.input_columns)

    def calculate_normalized_output_count(self) -> int:
        strategy = self._require_strategy()
        return sum(strategy.normalized_size(col, False) for col in self.output_columns)

    def normalize_frame(self, frame: pd.DataFrame) -> np.ndarray:
        """Normalize inputs then outputs into one float matrix"""
        strategy = self._require_strategy()
        for col in self.output_columns:
            missing = int(frame[col.name].isna().sum())
            if col.is_categorical and missing:
                raise InvalidArgumentError(
                    f"Predicted column '{col.name}' has {missing} missing values; "
                    f"drop those rows before normalizing"
                )
        blocks = [strategy.normalize_column(col, True, frame[col.name]) for col in self.input_columns]
        blocks += [strategy.normalize_column(col, False, frame[col.name]) for col in self.output_columns]
        return np.hstack(blocks).astype(float)


class VersatileDataset:
    """A pandas frame plus the column metadata needed to normalize it.

    Typical use::

        dataset = VersatileDataset(frame)
        dataset.analyze()
        dataset.define_single_output_others_input('species')
    """

    def __init__(self, frame: pd.DataFrame):
        self.frame = frame.reset_index(drop=True)
        self.columns: Dict[str, ColumnDefinition] = {}
        self.norm_helper = NormalizationHelper()
        self._data: Optional[np.ndarray] = None
        self._normalized_with: Optional[NormalizationStrategy] = None

    def __len__(self) -> int:
        return self.frame.shape[0]

    def define_source_column(self, name: str, data_type: Optional[ColumnType] = None) -> ColumnDefinition:
        if name not in self.frame.columns:
            raise InvalidArgumentError(f"Column '{name}' not found in dataset")
        if data_type is None:
            data_type = infer_column_type(self.frame[name])
        column = ColumnDefinition(name=name, data_type=data_type)
        self.columns[name] = column
        return column

    def analyze(self):
        """Define any undefined columns and compute per-column statistics"""
        for name in self.frame.columns:
            if name not in self.columns:
                self.define_source_column(name)
        for column in self.columns.values():
            column.analyze(self.frame[column.name])
        logger.info(f"Analyzed {len(self.columns)} columns over {len(self)} rows")

    def _column(self, name: str) -> ColumnDefinition:
        if name not in self.columns:
            raise InvalidArgumentError(f"Column '{name}' has not been defined")
        return self.columns[name]

    def _assign_role(self, name: str, role: ColumnRole):
        """A column holds one role; reassigning moves it, repeating is a no-op"""
        column = self._column(name)
        helper = self.norm_helper
        current = {ColumnRole.input: helper.input_columns, ColumnRole.predicted: helper.output_columns}
        if any(c is column for c in current.get(role, [])):
            return
        helper.input_columns[:] = [c for c in helper.input_columns if c is not column]
        helper.output_columns[:] = [c for c in helper.output_columns if c is not column]
        column.role = role
        if role == ColumnRole.input:
            helper.input_columns.append(column)
        elif role == ColumnRole.predicted:
            helper.output_columns.append(column)

    def define_input(self, name: str):
        self._assign_role(name, ColumnRole.input)

    def define_output(self, name: str):
        self._assign_role(name, ColumnRole.predicted)

    def define_single_output_others_input(self, name: str):
        self.norm_helper.input_columns.clear()
        self.norm_helper.output_columns.clear()
        for column in self.columns.values():
            column.role = ColumnRole.ignored
        self.define_output(name)
        for column in self.columns.values():
            if column.name != name:
                self.define_input(column.name)

    @property
    def is_normalized(self) -> bool:
        return self._data is not None and self._normalized_with is self.norm_helper.strategy

    def normalize(self) -> np.ndarray:
        self._data = self.norm_helper.normalize_frame(self.frame)
        self._normalized_with = self.norm_helper.strategy
        logger.info(
            f"Normalized dataset: {self._data.shape[0]} rows, "
            f"{self.norm_helper.calculate_normalized_input_count()} inputs, "
            f"{self.norm_helper.calculate_normalized_output_count()} outputs"
        )
        return self._data

    def as_matrix_dataset(self) -> MatrixDataset:
        if not self.is_normalized:
            raise OrderingViolationError("Please call normalize before using the dataset as a matrix.")
        return MatrixDataset(
            self._data,
            self.norm_helper.calculate_normalized_input_count(),
            self.norm_helper.calculate_normalized_output_count(),
        )

    def divide(self, divisions: List[DataDivision], shuffle: bool,
               random_source: Optional[np.random.RandomState] = None):
        """Split the normalized rows across ``divisions`` in order.

        Every division but the last receives ``int(percent * n)`` rows and the
        last receives the remainder, so the divisions cover the whole dataset.
        """
        if not divisions:
            raise InvalidArgumentError("At least one data division is required")
        full = self.as_matrix_dataset()
        total = len(full)

        order = np.arange(total)
        if shuffle:
            if random_source is None:
                random_source = make_random_source()
            random_source.shuffle(order)

        so_far = 0
        for division in divisions[:-1]:
            division.count = int(division.percent * total)
            so_far += division.count
        divisions[-1].count = total - so_far

        start = 0
        for division in divisions:
            if division.count <= 0:
                raise InvalidArgumentError(
                    f"Division of {division.percent:.2%} leaves no rows out of {total}"
                )
            division.dataset = full.subset(order[start:start + division.count])
            start += division.count
