# automodel/methods/base.py
from abc import ABC, abstractmethod

import numpy as np


class MLMethod(ABC):
    """A model instance sized for a fixed number of normalized inputs and outputs"""

    def __init__(self, input_count: int, output_count: int):
        self.input_count = input_count
        self.output_count = output_count

    def __repr__(self):
        return f"{type(self).__name__}(inputs={self.input_count}, outputs={self.output_count})"


class MLRegression(MLMethod):

    @abstractmethod
    def compute(self, X: np.ndarray) -> np.ndarray:
        """Return an array of shape (n_rows, output_count)"""
        pass


class MLClassification(MLMethod):

    @abstractmethod
    def classify(self, X: np.ndarray) -> np.ndarray:
        """Return the predicted class index for every row"""
        pass


def winner(outputs: np.ndarray) -> np.ndarray:
    """Class index from network outputs: arg-max for one-of-N, rounded value for one column"""
    outputs = np.asarray(outputs)
    if outputs.ndim == 1 or outputs.shape[1] == 1:
        return np.rint(outputs.reshape(-1)).astype(int)
    return np.argmax(outputs, axis=1)
