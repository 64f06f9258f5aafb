# automodel/__init__.py
"""Automatic model selection, normalization and k-fold cross-validation for tabular data"""
from automodel.config import Config, get_config
from automodel.data.columns import ColumnDefinition, ColumnRole, ColumnType
from automodel.data.dataset import VersatileDataset
from automodel.errors import (
    AutoModelError, EmptyFoldSetError, ErrorKind, InvalidArgumentError, OrderingViolationError,
    TypeMismatchError, UnknownAlgorithmError, UnsupportedConfigurationError, UnsupportedTrainingKindError
)
from automodel.methods.factory import MethodType
from automodel.model import AutoModel, ModelState

__version__ = "0.1.0"
