# automodel/training/base.py
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from automodel.data.dataset import MatrixDataset


class TrainingImplementationType(Enum):
    ITERATIVE = "iterative"
    ONE_PASS = "one_pass"
    BACKGROUND = "background"


class Strategy(ABC):
    """Hook called around every training iteration"""

    def init(self, train: 'BasicTraining'):
        self.train = train

    def pre_iteration(self):
        pass

    def post_iteration(self):
        pass


class EndTrainingStrategy(Strategy):
    """A strategy that can end training"""

    @abstractmethod
    def should_stop(self) -> bool:
        pass


class BasicTraining(ABC):
    """Common state for trainers: iteration count, error and attached strategies"""

    implementation_type = TrainingImplementationType.ITERATIVE

    def __init__(self, method, training: MatrixDataset, max_iterations: Optional[int] = None):
        self.method = method
        self.training = training
        self.max_iterations = max_iterations
        self.iteration_number = 0
        self.error = float('inf')
        self.strategies: List[Strategy] = []

    def add_strategy(self, strategy: Strategy):
        strategy.init(self)
        self.strategies.append(strategy)

    @property
    def reached_max_iterations(self) -> bool:
        return self.max_iterations is not None and self.iteration_number >= self.max_iterations

    @property
    def stop_requested(self) -> bool:
        return any(isinstance(s, EndTrainingStrategy) and s.should_stop() for s in self.strategies)

    @property
    def is_training_done(self) -> bool:
        return self.stop_requested or self.reached_max_iterations

    def iteration(self):
        for strategy in self.strategies:
            strategy.pre_iteration()
        self.error = self._iteration()
        self.iteration_number += 1
        for strategy in self.strategies:
            strategy.post_iteration()

    @abstractmethod
    def _iteration(self) -> float:
        """Advance training by one step and return the training error"""
        pass
