# automodel/training/early_stopping.py
import logging
from typing import Callable

from automodel.data.dataset import MatrixDataset
from automodel.training.base import EndTrainingStrategy

logger = logging.getLogger(__name__)


class SimpleEarlyStoppingStrategy(EndTrainingStrategy):
    """Stop once the validation error stops improving.

    After each iteration the validation error of the current model is
    recomputed with ``error_function``. Every ``check_frequency`` iterations it
    is compared with the error at the previous check; training stops when the
    improvement is not greater than ``min_improvement``.
    """

    def __init__(self, validation: MatrixDataset, error_function: Callable,
                 check_frequency: int = 5, min_improvement: float = 0.0):
        self.validation = validation
        self.error_function = error_function
        self.check_frequency = check_frequency
        self.min_improvement = min_improvement
        self.validation_error = float('inf')
        self.training_error = float('inf')
        self._checked_error = float('inf')
        self._since_check = 0
        self._stop = False

    def should_stop(self) -> bool:
        return self._stop

    def post_iteration(self):
        self._since_check += 1
        self.training_error = self.train.error
        self.validation_error = float(self.error_function(self.train.method, self.validation))

        first_check = self._checked_error == float('inf')
        if first_check or self._since_check >= self.check_frequency:
            self._since_check = 0
            improvement = self._checked_error - self.validation_error
            self._stop = not first_check and improvement <= self.min_improvement
            if self._stop:
                logger.debug(
                    f"Early stop at iteration {self.train.iteration_number}: "
                    f"validation error {self.validation_error:.8f} vs {self._checked_error:.8f}"
                )
            self._checked_error = self.validation_error
