# automodel/methods/svm.py
import numpy as np
from sklearn.multioutput import MultiOutputRegressor
from sklearn.svm import SVC, SVR

from automodel.methods.base import MLClassification, MLRegression


class SVMClassifier(MLClassification):
    """Support vector classifier over an indexed class column"""

    def __init__(self, input_count: int, output_count: int, kernel: str = 'rbf', C: float = 1.0):
        super().__init__(input_count, output_count)
        self.estimator = SVC(kernel=kernel, C=C, gamma='scale')

    def fit(self, X: np.ndarray, ideal: np.ndarray):
        self.estimator.fit(X, np.rint(np.asarray(ideal)[:, 0]).astype(int))

    def classify(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict(X)).astype(int)


class SVMRegressor(MLRegression):
    """Support vector regression; one SVR per output column when there are several"""

    def __init__(self, input_count: int, output_count: int, kernel: str = 'rbf', C: float = 1.0):
        super().__init__(input_count, output_count)
        svr = SVR(kernel=kernel, C=C, gamma='scale')
        self.estimator = MultiOutputRegressor(svr) if output_count > 1 else svr

    def fit(self, X: np.ndarray, ideal: np.ndarray):
        ideal = np.asarray(ideal)
        self.estimator.fit(X, ideal if self.output_count > 1 else ideal.ravel())

    def compute(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict(X)).reshape(len(X), -1)
