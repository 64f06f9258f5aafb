# tests/test_crossvalidation.py
from unittest import mock

import numpy as np
import pytest

from automodel.crossvalidation import CrossValidator
from automodel.data.dataset import MatrixDataset
from automodel.data.folds import DataFold
from automodel.errors import EmptyFoldSetError, ErrorKind


def scored_fold(score, method=None):
    data = MatrixDataset(np.zeros((4, 2)), 1, 1)
    fold = DataFold(data.subset([0, 1]), data.subset([2, 3]))
    fold.assign(score, method)
    return fold


def fit_by_validation_mean(k, fold_number, fold, report):
    """Scores each fold by the mean of its validation inputs"""
    fold.assign(float(fold.validation.input.mean()), f"model-{fold_number}")


class TestAggregate:

    def test_mean_and_minimum(self):
        result = CrossValidator.aggregate([scored_fold(0.4, 'a'), scored_fold(0.1, 'b'), scored_fold(0.7, 'c')])

        assert result.mean_score == pytest.approx(0.4)
        assert result.best_score == pytest.approx(0.1)
        assert result.best_method == 'b'
        assert result.scores == pytest.approx((0.4, 0.1, 0.7))

    def test_ties_keep_first_fold(self):
        result = CrossValidator.aggregate([scored_fold(0.3, 'first'), scored_fold(0.2, 'second'),
                                           scored_fold(0.2, 'third')])

        assert result.best_method == 'second'

    def test_empty(self):
        with pytest.raises(EmptyFoldSetError):
            CrossValidator.aggregate([])


class TestCrossValidator:

    @pytest.fixture
    def matrix(self):
        return MatrixDataset(np.arange(40, dtype=float).reshape(20, 2), 1, 1)

    @pytest.fixture
    def mock_mlflow(self):
        """Mock MLflow for testing"""
        with mock.patch('mlflow.set_experiment') as set_experiment, \
             mock.patch('mlflow.start_run') as start_run, \
             mock.patch('mlflow.log_param') as log_param, \
             mock.patch('mlflow.log_metric') as log_metric:
            yield {
                'set_experiment': set_experiment,
                'start_run': start_run,
                'log_param': log_param,
                'log_metric': log_metric,
            }

    def test_run(self, matrix):
        report = mock.Mock()
        result = CrossValidator(fit_by_validation_mean, report=report).run(matrix, 4, False)

        # unshuffled folds take consecutive rows, so the first fold scores lowest
        assert len(result.folds) == 4
        assert result.best_method == 'model-1'
        assert result.mean_score == pytest.approx(np.mean(result.scores))
        assert report.report.call_args_list[0] == mock.call(4, 1, "Fold #1")
        assert report.report.call_args_list[-1][0][2].startswith("Cross-validated score:")

    def test_zero_folds(self, matrix):
        with pytest.raises(EmptyFoldSetError) as excinfo:
            CrossValidator(fit_by_validation_mean).run(matrix, 0, True, 1)

        assert excinfo.value.kind == ErrorKind.EMPTY_FOLD_SET

    def test_parallel_matches_sequential(self, matrix):
        sequential = CrossValidator(fit_by_validation_mean).run(matrix, 5, True, 3)
        parallel = CrossValidator(fit_by_validation_mean, n_jobs=2).run(matrix, 5, True, 3)

        assert parallel.scores == pytest.approx(sequential.scores)
        assert parallel.best_method == sequential.best_method

    def test_tracking(self, matrix, mock_mlflow):
        """Test fold scores and the mean are logged to MLflow"""
        validator = CrossValidator(fit_by_validation_mean, track=True,
                                   run_params={'method_type': 'svm'}, experiment_name='cv-test')
        result = validator.run(matrix, 4, False)

        mock_mlflow['set_experiment'].assert_called_once_with('cv-test')
        mock_mlflow['start_run'].assert_called_once()
        mock_mlflow['log_param'].assert_any_call('method_type', 'svm')
        mock_mlflow['log_param'].assert_any_call('k', 4)
        mock_mlflow['log_metric'].assert_any_call('cv_mean', result.mean_score)
        fold_logs = [c for c in mock_mlflow['log_metric'].call_args_list if c[0][0] == 'fold_score']
        assert len(fold_logs) == 4

    def test_no_tracking_by_default(self, matrix, mock_mlflow):
        CrossValidator(fit_by_validation_mean).run(matrix, 4, False)

        mock_mlflow['start_run'].assert_not_called()
