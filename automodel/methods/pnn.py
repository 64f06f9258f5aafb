# automodel/methods/pnn.py
import numpy as np
from sklearn.metrics.pairwise import rbf_kernel

from automodel.methods.base import MLClassification, MLRegression


class BasicPNN:
    """Parzen-window network: the training rows themselves are the pattern layer"""

    def __init__(self, sigma: float = 1.0):
        self.sigma = sigma
        self.patterns = None
        self.targets = None

    @property
    def gamma(self) -> float:
        return 1.0 / (2.0 * self.sigma ** 2)

    def fit(self, X: np.ndarray, ideal: np.ndarray):
        self.patterns = np.asarray(X, dtype=float)
        self.targets = np.asarray(ideal, dtype=float)

    def _kernel(self, X: np.ndarray) -> np.ndarray:
        return rbf_kernel(np.asarray(X, dtype=float), self.patterns, gamma=self.gamma)

    def _leave_one_out_kernel(self) -> np.ndarray:
        kernel = rbf_kernel(self.patterns, self.patterns, gamma=self.gamma)
        np.fill_diagonal(kernel, 0.0)
        return kernel


class PNNClassifier(BasicPNN, MLClassification):

    def __init__(self, input_count: int, output_count: int, sigma: float = 1.0):
        MLClassification.__init__(self, input_count, output_count)
        BasicPNN.__init__(self, sigma)

    def _class_scores(self, kernel: np.ndarray) -> np.ndarray:
        labels = np.rint(self.targets[:, 0]).astype(int)
        membership = np.zeros((len(labels), self.output_count))
        membership[np.arange(len(labels)), labels] = 1.0
        counts = np.maximum(membership.sum(axis=0), 1.0)
        return (kernel @ membership) / counts

    def classify(self, X: np.ndarray) -> np.ndarray:
        return np.argmax(self._class_scores(self._kernel(X)), axis=1)

    def leave_one_out_error(self) -> float:
        predicted = np.argmax(self._class_scores(self._leave_one_out_kernel()), axis=1)
        return float(np.mean(predicted != np.rint(self.targets[:, 0]).astype(int)))


class PNNRegressor(BasicPNN, MLRegression):

    def __init__(self, input_count: int, output_count: int, sigma: float = 1.0):
        MLRegression.__init__(self, input_count, output_count)
        BasicPNN.__init__(self, sigma)

    def _weighted(self, kernel: np.ndarray) -> np.ndarray:
        totals = kernel.sum(axis=1, keepdims=True)
        weighted = kernel @ self.targets
        fallback = np.broadcast_to(self.targets.mean(axis=0), weighted.shape)
        with np.errstate(invalid='ignore', divide='ignore'):
            return np.where(totals > 0, weighted / totals, fallback)

    def compute(self, X: np.ndarray) -> np.ndarray:
        return self._weighted(self._kernel(X))

    def leave_one_out_error(self) -> float:
        predicted = self._weighted(self._leave_one_out_kernel())
        return float(np.mean((predicted - self.targets) ** 2))
