# automodel/training/trainers.py
import logging
from typing import Optional, Sequence

import numpy as np
from sklearn.metrics import mean_squared_error
from sklearn.utils import check_random_state

from automodel.data.dataset import MatrixDataset
from automodel.methods.networks import FeedforwardNetwork, NEATNetwork, RBFNetwork
from automodel.methods.pnn import BasicPNN
from automodel.methods.svm import SVMClassifier, SVMRegressor
from automodel.training.base import BasicTraining, TrainingImplementationType

logger = logging.getLogger(__name__)


class NetworkTrainer(BasicTraining):
    """Gradient training of feedforward and RBF networks, one epoch per iteration"""

    implementation_type = TrainingImplementationType.ITERATIVE

    def __init__(self, method, training: MatrixDataset, solver: str = 'adam',
                 learning_rate: Optional[float] = None, max_iterations: Optional[int] = None):
        super().__init__(method, training, max_iterations)
        if isinstance(method, FeedforwardNetwork):
            params = {'solver': solver}
            if learning_rate is not None:
                params['learning_rate_init'] = learning_rate
            method.estimator.set_params(**params)
        elif isinstance(method, RBFNetwork) and learning_rate is not None:
            method.readout.estimator.set_params(eta0=learning_rate)

    def _iteration(self) -> float:
        self.method.partial_fit(self.training.input, self.training.ideal)
        return mean_squared_error(self.training.ideal, self.method.compute(self.training.input))


class SVMTrainer(BasicTraining):
    """Fits the support vector machine in a single pass"""

    implementation_type = TrainingImplementationType.ONE_PASS

    def _iteration(self) -> float:
        self.method.fit(self.training.input, self.training.ideal)
        if isinstance(self.method, SVMClassifier):
            actual = np.rint(self.training.ideal[:, 0]).astype(int)
            return float(np.mean(self.method.classify(self.training.input) != actual))
        return mean_squared_error(self.training.ideal, self.method.compute(self.training.input))


class PNNTrainer(BasicTraining):
    """Stores the patterns and picks the kernel width with the lowest leave-one-out error"""

    implementation_type = TrainingImplementationType.ONE_PASS

    def __init__(self, method: BasicPNN, training: MatrixDataset,
                 sigmas: Sequence[float] = (0.05, 0.1, 0.2, 0.5, 1.0, 2.0),
                 max_iterations: Optional[int] = None):
        super().__init__(method, training, max_iterations)
        self.sigmas = tuple(sigmas)

    def _iteration(self) -> float:
        self.method.fit(self.training.input, self.training.ideal)
        best_sigma, best_error = self.method.sigma, float('inf')
        for sigma in self.sigmas:
            self.method.sigma = sigma
            error = self.method.leave_one_out_error()
            if error < best_error:
                best_sigma, best_error = sigma, error
        self.method.sigma = best_sigma
        logger.debug(f"PNN sigma={best_sigma} (leave-one-out error {best_error:.6f})")
        return best_error


class NEATTrainer(BasicTraining):
    """Evolves the genome of a NEATNetwork; each iteration is one generation.

    The population keeps an elite share unchanged and refills the rest with
    mutated uniform crossovers of elite parents.
    """

    implementation_type = TrainingImplementationType.ITERATIVE

    def __init__(self, method: NEATNetwork, training: MatrixDataset, population_size: int = 50,
                 elite_fraction: float = 0.2, mutation_scale: float = 0.1,
                 random_state=None, max_iterations: Optional[int] = None):
        super().__init__(method, training, max_iterations)
        self.rng = check_random_state(random_state)
        self.population_size = max(population_size, 2)
        self.elite_count = max(1, int(self.population_size * elite_fraction))
        self.mutation_scale = mutation_scale
        self.population = self.rng.normal(0.0, 1.0, size=(self.population_size, method.genome_size))
        self.population[0] = method.genome

    def _fitness(self, genome: np.ndarray) -> float:
        self.method.genome = genome
        return mean_squared_error(self.training.ideal, self.method.compute(self.training.input))

    def _iteration(self) -> float:
        scores = np.array([self._fitness(genome) for genome in self.population])
        ranked = self.population[np.argsort(scores, kind='stable')]
        elite = ranked[:self.elite_count]

        children = []
        for _ in range(self.population_size - self.elite_count):
            mother, father = elite[self.rng.randint(len(elite), size=2)]
            mix = self.rng.rand(len(mother)) < 0.5
            child = np.where(mix, mother, father)
            children.append(child + self.rng.normal(0.0, self.mutation_scale, size=child.shape))
        self.population = np.vstack([elite] + children) if children else elite.copy()

        self.method.genome = elite[0].copy()
        return float(np.min(scores))
