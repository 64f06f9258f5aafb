# automodel/methods/networks.py
from typing import Optional, Sequence

import numpy as np
from sklearn.linear_model import SGDRegressor
from sklearn.metrics.pairwise import rbf_kernel
from sklearn.multioutput import MultiOutputRegressor
from sklearn.neural_network import MLPRegressor
from sklearn.utils import check_random_state

from automodel.errors import UnsupportedConfigurationError
from automodel.methods.base import MLClassification, MLRegression, winner

ACTIVATIONS = {
    'TANH': 'tanh',
    'SIGMOID': 'logistic',
    'RELU': 'relu',
    'RAMP': 'relu',
    'LINEAR': 'identity',
}


def _seed_from(random_state) -> int:
    return int(check_random_state(random_state).randint(np.iinfo(np.int32).max))


def _as_targets(y: np.ndarray) -> np.ndarray:
    y = np.asarray(y)
    return y.ravel() if y.ndim == 2 and y.shape[1] == 1 else y


class FeedforwardNetwork(MLRegression, MLClassification):
    """Multi-layer perceptron; classification picks the winning output neuron"""

    def __init__(self, input_count: int, output_count: int, hidden_layers: Sequence[int],
                 activation: str = 'TANH', random_state=None):
        super().__init__(input_count, output_count)
        if activation.upper() not in ACTIVATIONS:
            raise UnsupportedConfigurationError(f"Unsupported activation function: {activation}")
        self.hidden_layers = tuple(hidden_layers)
        self.activation = ACTIVATIONS[activation.upper()]
        self.estimator = MLPRegressor(
            hidden_layer_sizes=self.hidden_layers,
            activation=self.activation,
            solver='adam',
            random_state=_seed_from(random_state),
        )

    def partial_fit(self, X: np.ndarray, y: np.ndarray):
        self.estimator.partial_fit(X, _as_targets(y))

    def compute(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict(X)).reshape(len(X), -1)

    def classify(self, X: np.ndarray) -> np.ndarray:
        return winner(self.compute(X))


class RBFNetwork(MLRegression, MLClassification):
    """Gaussian hidden layer with fixed random centres and a linear read-out.

    Centres are drawn uniformly from [0, 1] in every input dimension, which is
    where the suggested normalization puts the data.
    """

    def __init__(self, input_count: int, output_count: int, center_count: int,
                 gamma: Optional[float] = None, random_state=None):
        super().__init__(input_count, output_count)
        if center_count < 1:
            raise UnsupportedConfigurationError(f"RBF network needs at least one centre, got {center_count}")
        rng = check_random_state(random_state)
        self.centers = rng.uniform(0.0, 1.0, size=(center_count, input_count))
        self.gamma = gamma if gamma is not None else 1.0 / max(input_count, 1)
        self.readout = MultiOutputRegressor(SGDRegressor(random_state=_seed_from(rng)))

    def hidden(self, X: np.ndarray) -> np.ndarray:
        return rbf_kernel(X, self.centers, gamma=self.gamma)

    def partial_fit(self, X: np.ndarray, y: np.ndarray):
        self.readout.partial_fit(self.hidden(X), np.asarray(y).reshape(len(X), -1))

    def compute(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.readout.predict(self.hidden(X))).reshape(len(X), -1)

    def classify(self, X: np.ndarray) -> np.ndarray:
        return winner(self.compute(X))


class NEATNetwork(MLRegression, MLClassification):
    """Recurrent genome evaluated for a fixed number of activation cycles.

    The weights are a flat genome so an evolutionary trainer can mutate and
    recombine them; outputs pass through a sigmoid to match [0, 1] targets.
    """

    def __init__(self, input_count: int, output_count: int, hidden_count: int,
                 cycles: int = 4, random_state=None):
        super().__init__(input_count, output_count)
        if cycles < 1:
            raise UnsupportedConfigurationError(f"NEAT network needs at least one cycle, got {cycles}")
        self.hidden_count = hidden_count
        self.cycles = cycles
        self._shapes = [
            (input_count + 1, hidden_count),
            (hidden_count, hidden_count),
            (hidden_count + 1, output_count),
        ]
        rng = check_random_state(random_state)
        self.genome = rng.normal(0.0, 1.0, size=self.genome_size)

    @property
    def genome_size(self) -> int:
        return sum(rows * cols for rows, cols in self._shapes)

    def _weights(self):
        weights, start = [], 0
        for rows, cols in self._shapes:
            weights.append(self.genome[start:start + rows * cols].reshape(rows, cols))
            start += rows * cols
        return weights

    def compute(self, X: np.ndarray) -> np.ndarray:
        w_in, w_rec, w_out = self._weights()
        X = np.asarray(X, dtype=float)
        state = np.zeros((X.shape[0], self.hidden_count))
        drive = X @ w_in[:-1] + w_in[-1]
        for _ in range(self.cycles):
            state = np.tanh(drive + state @ w_rec)
        return 1.0 / (1.0 + np.exp(-(state @ w_out[:-1] + w_out[-1])))

    def classify(self, X: np.ndarray) -> np.ndarray:
        return winner(self.compute(X))
