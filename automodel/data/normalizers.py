# automodel/data/normalizers.py
from abc import ABC, abstractmethod
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler, OneHotEncoder, OrdinalEncoder

from automodel.data.columns import ColumnDefinition, ColumnType
from automodel.errors import UnsupportedConfigurationError


class Normalizer(ABC):
    """Turns one analysed source column into model-ready numeric columns"""

    @abstractmethod
    def output_size(self, column: ColumnDefinition) -> int:
        pass

    @abstractmethod
    def normalize_column(self, column: ColumnDefinition, values: pd.Series) -> np.ndarray:
        """Return an array of shape (len(values), output_size(column))"""
        pass


class RangeNormalizer(Normalizer):
    """Scales a continuous column from its analysed [low, high] into [norm_low, norm_high]"""

    def __init__(self, norm_low: float = 0.0, norm_high: float = 1.0):
        self.norm_low = norm_low
        self.norm_high = norm_high

    def output_size(self, column: ColumnDefinition) -> int:
        return 1

    def normalize_column(self, column: ColumnDefinition, values: pd.Series) -> np.ndarray:
        if column.low is None or column.high is None:
            raise UnsupportedConfigurationError(
                f"Column '{column.name}' must be analyzed before range normalization"
            )
        scaler = MinMaxScaler(feature_range=(self.norm_low, self.norm_high))
        scaler.fit(np.array([[column.low], [column.high]]))
        numeric = pd.to_numeric(values).fillna(column.mean).to_numpy(dtype=float)
        return scaler.transform(numeric.reshape(-1, 1))

    def __repr__(self):
        return f"RangeNormalizer({self.norm_low}, {self.norm_high})"


class OneOfNNormalizer(Normalizer):
    """One column per class: norm_high for the active class, norm_low elsewhere"""

    def __init__(self, norm_low: float = 0.0, norm_high: float = 1.0):
        self.norm_low = norm_low
        self.norm_high = norm_high

    def output_size(self, column: ColumnDefinition) -> int:
        return len(column.classes)

    def normalize_column(self, column: ColumnDefinition, values: pd.Series) -> np.ndarray:
        """Missing and unseen values leave every column at norm_low"""
        encoder = OneHotEncoder(
            categories=[column.classes], sparse_output=False, handle_unknown='ignore'
        )
        present = values.notna().to_numpy()
        encoded = np.zeros((len(values), len(column.classes)))
        if present.any():
            encoded[present] = encoder.fit_transform(values[present].astype(str).to_numpy().reshape(-1, 1))
        return encoded * (self.norm_high - self.norm_low) + self.norm_low

    def __repr__(self):
        return f"OneOfNNormalizer({self.norm_low}, {self.norm_high})"


class IndexedNormalizer(Normalizer):
    """Replaces each class by its index in the analysed class list"""

    def output_size(self, column: ColumnDefinition) -> int:
        return 1

    def normalize_column(self, column: ColumnDefinition, values: pd.Series) -> np.ndarray:
        """Missing values take the index of the most frequent class"""
        if column.mode is None:
            raise UnsupportedConfigurationError(
                f"Column '{column.name}' must be analyzed before indexed normalization"
            )
        filled = values.astype(object).where(values.notna(), column.mode)
        encoder = OrdinalEncoder(categories=[column.classes])
        return encoder.fit_transform(filled.astype(str).to_numpy().reshape(-1, 1))

    def __repr__(self):
        return "IndexedNormalizer()"


class NormalizationStrategy(ABC):

    @abstractmethod
    def normalized_size(self, column: ColumnDefinition, is_input: bool) -> int:
        pass

    @abstractmethod
    def normalize_column(self, column: ColumnDefinition, is_input: bool, values: pd.Series) -> np.ndarray:
        pass


class BasicNormalizationStrategy(NormalizationStrategy):
    """Per-role mapping from column data type to normalizer"""

    def __init__(self):
        self.input_normalizers: Dict[ColumnType, Normalizer] = {}
        self.output_normalizers: Dict[ColumnType, Normalizer] = {}

    def assign_input_normalizer(self, data_type: ColumnType, normalizer: Normalizer):
        self.input_normalizers[data_type] = normalizer

    def assign_output_normalizer(self, data_type: ColumnType, normalizer: Normalizer):
        self.output_normalizers[data_type] = normalizer

    def find_normalizer(self, column: ColumnDefinition, is_input: bool) -> Normalizer:
        normalizers = self.input_normalizers if is_input else self.output_normalizers
        if column.data_type not in normalizers:
            role = "input" if is_input else "output"
            raise UnsupportedConfigurationError(
                f"No {role} normalizer assigned for {column.data_type.value} column '{column.name}'"
            )
        return normalizers[column.data_type]

    def normalized_size(self, column: ColumnDefinition, is_input: bool) -> int:
        return self.find_normalizer(column, is_input).output_size(column)

    def normalize_column(self, column: ColumnDefinition, is_input: bool, values: pd.Series) -> np.ndarray:
        return self.find_normalizer(column, is_input).normalize_column(column, values)
