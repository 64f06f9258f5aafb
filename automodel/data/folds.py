# automodel/data/folds.py
import logging
from typing import Any, List, Optional

from sklearn.model_selection import KFold

from automodel.data.dataset import MatrixDataset
from automodel.errors import InvalidArgumentError, OrderingViolationError

logger = logging.getLogger(__name__)


class DataFold:
    """Disjoint training/validation pair; score and method are assigned once after fitting"""

    def __init__(self, training: MatrixDataset, validation: MatrixDataset):
        self.training = training
        self.validation = validation
        self.score: Optional[float] = None
        self.method: Any = None

    @property
    def is_fitted(self) -> bool:
        return self.score is not None

    def assign(self, score: float, method: Any):
        if self.is_fitted:
            raise OrderingViolationError("Fold has already been fitted")
        self.score = float(score)
        self.method = method

    def __repr__(self):
        return (f"DataFold(training={len(self.training)}, validation={len(self.validation)}, "
                f"score={self.score})")


class KFoldCrossValidation:
    """Standard k-fold split of a matrix dataset"""

    def __init__(self, dataset: MatrixDataset, k: int):
        if k < 2:
            raise InvalidArgumentError(f"k-fold cross-validation needs k >= 2, got {k}")
        if k > len(dataset):
            raise InvalidArgumentError(
                f"Cannot split {len(dataset)} rows into {k} folds"
            )
        self.dataset = dataset
        self.k = k
        self.folds: List[DataFold] = []

    def process(self, shuffle: bool, seed: Optional[int] = None) -> List[DataFold]:
        """Build the folds; with ``shuffle`` the permutation is fixed by ``seed``"""
        splitter = KFold(n_splits=self.k, shuffle=shuffle, random_state=seed if shuffle else None)

        self.folds = [
            DataFold(self.dataset.subset(train_rows), self.dataset.subset(validation_rows))
            for train_rows, validation_rows in splitter.split(self.dataset.input)
        ]
        logger.debug(f"Split {len(self.dataset)} rows into {len(self.folds)} folds (shuffle={shuffle})")
        return self.folds
