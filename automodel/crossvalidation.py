# automodel/crossvalidation.py
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional, Tuple

import mlflow
from joblib import Parallel, delayed

from automodel.data.dataset import MatrixDataset
from automodel.data.folds import DataFold, KFoldCrossValidation
from automodel.errors import EmptyFoldSetError, UnsupportedTrainingKindError
from automodel.reporting import NullStatusReport, StatusReportable, SynchronizedStatusReport
from automodel.training.base import BasicTraining, EndTrainingStrategy, TrainingImplementationType
from automodel.training.early_stopping import SimpleEarlyStoppingStrategy

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CREATED = "created"
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


class TrainingSession:
    """Fits one fold with a fresh model and trainer.

    Iterative trainers are wrapped with an early stopping strategy built from
    the fold's validation rows and the fold score is that strategy's last
    validation error. One-pass trainers run a single iteration and the fold is
    scored directly with ``error_function``.
    """

    def __init__(self, k: int, fold_number: int, fold: DataFold,
                 create_method: Callable[[], Any],
                 create_trainer: Callable[[Any, MatrixDataset], BasicTraining],
                 error_function: Callable[[Any, MatrixDataset], float],
                 report: Optional[StatusReportable] = None,
                 early_stopping_factory: Optional[Callable[..., EndTrainingStrategy]] = None):
        self.k = k
        self.fold_number = fold_number
        self.fold = fold
        self.create_method = create_method
        self.create_trainer = create_trainer
        self.error_function = error_function
        self.report = report or NullStatusReport()
        self.early_stopping_factory = early_stopping_factory or SimpleEarlyStoppingStrategy
        self.state = SessionState.CREATED

    def run(self) -> DataFold:
        self.state = SessionState.RUNNING
        method = self.create_method()
        train = self.create_trainer(method, self.fold.training)

        if train.implementation_type == TrainingImplementationType.ITERATIVE:
            self._fit_iterative(method, train)
        elif train.implementation_type == TrainingImplementationType.ONE_PASS:
            self._fit_one_pass(method, train)
        else:
            raise UnsupportedTrainingKindError(
                f"Unsupported training type for cross-validation: {train.implementation_type}"
            )
        return self.fold

    def _fit_iterative(self, method, train: BasicTraining):
        early_stop = self.early_stopping_factory(self.fold.validation, self.error_function)
        train.add_strategy(early_stop)

        while not train.is_training_done:
            train.iteration()
            self.report.report(
                self.k, self.fold_number,
                f"Fold #{self.fold_number}/{self.k}: Iteration #{train.iteration_number}, "
                f"Training Error: {train.error:.8f}, "
                f"Validation Error: {early_stop.validation_error:.8f}"
            )

        self.state = SessionState.CONVERGED if early_stop.should_stop() else SessionState.EXHAUSTED
        logger.debug(f"Fold #{self.fold_number} {self.state.value} after {train.iteration_number} iterations")
        self.fold.assign(early_stop.validation_error, method)

    def _fit_one_pass(self, method, train: BasicTraining):
        train.iteration()
        validation_error = self.error_function(method, self.fold.validation)
        self.report.report(
            self.k, self.fold_number,
            f"Fold #{self.fold_number}/{self.k}: Trained, Training Error: {train.error:.8f}, "
            f"Validation Error: {validation_error:.8f}"
        )
        self.state = SessionState.CONVERGED
        self.fold.assign(validation_error, method)


@dataclass(frozen=True)
class CrossValidationResult:
    folds: Tuple[DataFold, ...]
    mean_score: float
    best_fold: DataFold

    @property
    def best_method(self):
        return self.best_fold.method

    @property
    def best_score(self) -> float:
        return self.best_fold.score

    @property
    def scores(self) -> Tuple[float, ...]:
        return tuple(fold.score for fold in self.folds)


class CrossValidator:
    """Runs ``fit_fold`` over every fold of a k-fold split and keeps the best model.

    ``fit_fold(k, fold_number, fold, report)`` must assign the fold's score and
    method. With ``n_jobs != 1`` folds are fitted on joblib worker threads; the
    minimum and mean are only computed once every fold has finished.
    """

    def __init__(self, fit_fold: Callable[[int, int, DataFold, StatusReportable], Any],
                 report: Optional[StatusReportable] = None, n_jobs: int = 1,
                 track: bool = False, run_params: Optional[Dict[str, Any]] = None,
                 experiment_name: Optional[str] = None):
        self.fit_fold = fit_fold
        self.report = report or NullStatusReport()
        self.n_jobs = n_jobs
        self.track = track
        self.run_params = run_params or {}
        self.experiment_name = experiment_name

    def run(self, dataset: MatrixDataset, k: int, shuffle: bool, seed: Optional[int] = None) -> CrossValidationResult:
        if k < 1:
            raise EmptyFoldSetError(f"Cross-validation needs at least one fold, got k={k}")

        folds = KFoldCrossValidation(dataset, k).process(shuffle, seed)
        if not folds:
            raise EmptyFoldSetError("The fold splitter produced no folds")

        report = self.report if self.n_jobs == 1 else SynchronizedStatusReport(self.report)
        work = partial(self._fit_one, k, report)

        if self.n_jobs == 1:
            for number, fold in enumerate(folds, start=1):
                work(number, fold)
        else:
            Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(work)(number, fold) for number, fold in enumerate(folds, start=1)
            )

        result = self.aggregate(folds)
        self.report.report(k, k, f"Cross-validated score: {result.mean_score}")
        logger.info(f"Cross-validated score over {k} folds: {result.mean_score:.8f} (best {result.best_score:.8f})")

        if self.track:
            self._track(result, k, shuffle)
        return result

    def _fit_one(self, k: int, report: StatusReportable, number: int, fold: DataFold):
        report.report(k, number, f"Fold #{number}")
        self.fit_fold(k, number, fold, report)

    @staticmethod
    def aggregate(folds) -> CrossValidationResult:
        """Mean score plus the first fold with the strictly lowest score"""
        folds = tuple(folds)
        if not folds:
            raise EmptyFoldSetError("Cannot aggregate an empty fold set")

        total = 0.0
        best = None
        for fold in folds:
            total += fold.score
            if best is None or fold.score < best.score:
                best = fold
        return CrossValidationResult(folds=folds, mean_score=total / len(folds), best_fold=best)

    def _track(self, result: CrossValidationResult, k: int, shuffle: bool):
        if self.experiment_name:
            mlflow.set_experiment(self.experiment_name)

        with mlflow.start_run(run_name=f"crossvalidate_{datetime.now().strftime('%Y%m%d_%H%M%S')}"):
            for name, value in self.run_params.items():
                mlflow.log_param(name, value)
            mlflow.log_param("k", k)
            mlflow.log_param("shuffle", shuffle)

            for number, score in enumerate(result.scores, start=1):
                mlflow.log_metric("fold_score", score, step=number)
            mlflow.log_metric("cv_mean", result.mean_score)
            mlflow.log_metric("best_fold_score", result.best_score)
