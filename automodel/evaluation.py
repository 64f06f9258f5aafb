# automodel/evaluation.py
import logging
from typing import Sequence

import numpy as np
from sklearn.metrics import accuracy_score, mean_squared_error

from automodel.data.columns import ColumnDefinition, ColumnType
from automodel.data.dataset import MatrixDataset
from automodel.errors import TypeMismatchError
from automodel.methods.base import MLClassification, MLRegression, winner

logger = logging.getLogger(__name__)


class ErrorEvaluator:
    """Scores a trained model on a validation subset.

    A single nominal output column is scored as a misclassification rate in
    [0, 1]; anything else is scored by mean squared error on the normalized
    outputs.
    """

    def __init__(self, output_columns: Sequence[ColumnDefinition]):
        self.output_columns = list(output_columns)

    @property
    def is_classification(self) -> bool:
        return len(self.output_columns) == 1 and self.output_columns[0].data_type == ColumnType.nominal

    def evaluate(self, method, data: MatrixDataset) -> float:
        if self.is_classification:
            if not isinstance(method, MLClassification):
                raise TypeMismatchError(
                    f"{type(method).__name__} cannot classify, but the predicted column "
                    f"'{self.output_columns[0].name}' is nominal"
                )
            return self.classification_error(method, data)

        if not isinstance(method, MLRegression):
            raise TypeMismatchError(f"{type(method).__name__} does not support regression")
        return self.regression_error(method, data)

    def __call__(self, method, data: MatrixDataset) -> float:
        return self.evaluate(method, data)

    @staticmethod
    def classification_error(method: MLClassification, data: MatrixDataset) -> float:
        actual = winner(data.ideal)
        predicted = np.asarray(method.classify(data.input))
        return float(1.0 - accuracy_score(actual, predicted))

    @staticmethod
    def regression_error(method: MLRegression, data: MatrixDataset) -> float:
        return float(mean_squared_error(data.ideal, method.compute(data.input)))
