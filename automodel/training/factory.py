# automodel/training/factory.py
import logging
from enum import Enum
from typing import Optional, Union

from automodel.data.dataset import MatrixDataset
from automodel.errors import UnsupportedConfigurationError
from automodel.methods.architecture import get_float, get_int, parse_params
from automodel.methods.networks import FeedforwardNetwork, NEATNetwork, RBFNetwork
from automodel.methods.pnn import BasicPNN
from automodel.methods.svm import SVMClassifier, SVMRegressor
from automodel.training.base import BasicTraining
from automodel.training.trainers import NEATTrainer, NetworkTrainer, PNNTrainer, SVMTrainer

logger = logging.getLogger(__name__)


class TrainingType(str, Enum):
    RPROP = "rprop"
    BACKPROP = "backprop"
    SVM = "svm"
    PNN = "pnn"
    NEAT = "neat"


class TrainerFactory:
    """Builds a trainer for a model, checking that the training type fits the model"""

    def create(self, method, training: MatrixDataset, training_type: Union[str, TrainingType],
               training_args: str = "", max_iterations: Optional[int] = None) -> BasicTraining:
        try:
            training_type = TrainingType(training_type)
        except ValueError:
            raise UnsupportedConfigurationError(f"Unknown training type: {training_type}")

        params = parse_params(training_args)
        # explicit args win over the configured cap
        if 'max_iterations' in params:
            max_iterations = get_int(params, 'max_iterations', 0)

        if training_type in (TrainingType.RPROP, TrainingType.BACKPROP):
            self._require(method, (FeedforwardNetwork, RBFNetwork), training_type)
            learning_rate = get_float(params, 'lr', 0.0) or None
            solver = 'adam' if training_type == TrainingType.RPROP else 'sgd'
            return NetworkTrainer(method, training, solver=solver, learning_rate=learning_rate,
                                  max_iterations=max_iterations)

        if training_type == TrainingType.SVM:
            self._require(method, (SVMClassifier, SVMRegressor), training_type)
            return SVMTrainer(method, training, max_iterations=max_iterations)

        if training_type == TrainingType.PNN:
            self._require(method, (BasicPNN,), training_type)
            if 'sigma' in params:
                return PNNTrainer(method, training, sigmas=(get_float(params, 'sigma', 1.0),),
                                  max_iterations=max_iterations)
            return PNNTrainer(method, training, max_iterations=max_iterations)

        self._require(method, (NEATNetwork,), training_type)
        return NEATTrainer(
            method, training,
            population_size=get_int(params, 'population', 50),
            mutation_scale=get_float(params, 'mutation', 0.1),
            random_state=get_int(params, 'seed', 0),
            max_iterations=max_iterations,
        )

    @staticmethod
    def _require(method, accepted, training_type: TrainingType):
        if not isinstance(method, accepted):
            raise UnsupportedConfigurationError(
                f"Training type '{training_type.value}' cannot train {type(method).__name__}"
            )
