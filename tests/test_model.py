# tests/test_model.py
from unittest import mock

import numpy as np
import pytest

from automodel.data.dataset import VersatileDataset
from automodel.errors import (
    ErrorKind, InvalidArgumentError, OrderingViolationError, TypeMismatchError,
    UnknownAlgorithmError, UnsupportedConfigurationError
)
from automodel.methods.pnn import PNNClassifier
from automodel.methods.svm import SVMClassifier, SVMRegressor
from automodel.model import AutoModel, ModelState


class RecordingReport:

    def __init__(self):
        self.messages = []

    def report(self, total, current, message):
        self.messages.append(message)


def prepared_model(dataset, config, method_type, validation_percent=0.3, seed=1001):
    """Model with method, hold-back and suggested training selected"""
    model = AutoModel(dataset, config=config)
    model.select_method(dataset, method_type)
    model.hold_back_validation(validation_percent, True, seed)
    model.select_training_type(dataset)
    return model


class TestOrdering:

    def test_select_training_before_method(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)

        with pytest.raises(OrderingViolationError,
                           match="Please select your training method, before your training type."):
            model.select_training(regression_dataset, 'svm')
        with pytest.raises(OrderingViolationError):
            model.select_training_type(regression_dataset)

    def test_create_method_before_select(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)

        with pytest.raises(OrderingViolationError) as excinfo:
            model.create_method()

        assert excinfo.value.kind == ErrorKind.ORDERING_VIOLATION

    def test_feature_views(self, classification_dataset, fast_config):
        model = AutoModel(classification_dataset, config=fast_config)

        assert [c.name for c in model.input_features] == [f'feature_{i}' for i in range(4)]
        assert [c.name for c in model.predicted_features] == ['target']

    def test_hold_back_before_select(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)

        with pytest.raises(OrderingViolationError):
            model.hold_back_validation(0.3, True, 1)

    def test_crossvalidate_without_training_data(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm')
        model.select_training_type(regression_dataset)

        with pytest.raises(OrderingViolationError):
            model.crossvalidate(5, True)

    def test_crossvalidate_without_training_type(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm')
        model.hold_back_validation(0.3, True, 1)

        assert model.state == ModelState.METHOD_SELECTED
        with pytest.raises(OrderingViolationError):
            model.crossvalidate(5, True)

    def test_reselecting_method_drops_held_back_data(self, regression_dataset, fast_config):
        model = prepared_model(regression_dataset, fast_config, 'svm')
        assert model.state == ModelState.READY

        model.select_method(regression_dataset, 'pnn')

        assert model.state == ModelState.METHOD_SELECTED
        assert model.training_dataset is None
        assert model.training_type is None

    def test_training_dataset_assignment(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm')
        model.select_training_type(regression_dataset)
        assert model.state == ModelState.TRAINING_SELECTED

        regression_dataset.normalize()
        model.training_dataset = regression_dataset.as_matrix_dataset()

        assert model.state == ModelState.READY


class TestArguments:

    @pytest.mark.parametrize('percent', [0.0, 1.0, -0.1, 1.5])
    def test_invalid_validation_percent(self, regression_dataset, fast_config, percent):
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm')

        with pytest.raises(InvalidArgumentError):
            model.hold_back_validation(percent, True, 1)

    def test_unknown_method(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)

        with pytest.raises(UnknownAlgorithmError):
            model.select_method(regression_dataset, 'bayesian')
        assert model.state == ModelState.UNCONFIGURED

    def test_other_dataset(self, regression_dataset, regression_frame, fast_config):
        other = VersatileDataset(regression_frame)
        model = AutoModel(regression_dataset, config=fast_config)

        with pytest.raises(InvalidArgumentError):
            model.select_method(other, 'svm')


class TestHoldBack:

    def test_split_sizes(self, classification_dataset, fast_config):
        model = AutoModel(classification_dataset, config=fast_config)
        model.select_method(classification_dataset, 'svm')
        model.hold_back_validation(0.2, True, 42)

        assert len(model.training_dataset) == 72
        assert len(model.validation_dataset) == 18
        assert set(model.training_dataset.mask).isdisjoint(model.validation_dataset.mask)

    def test_same_seed_same_split(self, classification_dataset, fast_config):
        """Test the hold-back split is reproducible for a seed"""
        model = AutoModel(classification_dataset, config=fast_config)
        model.select_method(classification_dataset, 'svm')

        model.hold_back_validation(0.2, True, 42)
        first = model.validation_dataset.mask.copy()
        model.hold_back_validation(0.2, True, 42)

        np.testing.assert_array_equal(model.validation_dataset.mask, first)


class TestCrossValidate:

    def test_svm_regression(self, regression_dataset, fast_config):
        model = prepared_model(regression_dataset, fast_config, 'svm')

        assert model.method_args.endswith("R->?")
        best = model.crossvalidate(5, True)

        result = model.cross_validation_result
        assert isinstance(best, SVMRegressor)
        assert len(result.folds) == 5
        assert np.isfinite(result.mean_score)
        assert result.mean_score == pytest.approx(np.mean(result.scores))
        assert result.best_score == min(result.scores)
        assert best is result.best_method

    def test_svm_classification(self, classification_dataset, fast_config):
        model = prepared_model(classification_dataset, fast_config, 'svm', validation_percent=0.2)

        best = model.crossvalidate(3, True)

        assert isinstance(best, SVMClassifier)
        assert 0.0 <= model.cross_validation_result.mean_score <= 1.0
        assert 0.0 <= model.calculate_error(best, model.validation_dataset) <= 1.0

    @pytest.mark.parametrize('method_type', ['feedforward', 'rbfnetwork', 'neat', 'pnn'])
    def test_classification_scores_are_rates(self, classification_dataset, fast_config, method_type):
        model = prepared_model(classification_dataset, fast_config, method_type, validation_percent=0.2)

        model.crossvalidate(3, True)

        assert all(0.0 <= score <= 1.0 for score in model.cross_validation_result.scores)

    @pytest.mark.parametrize('method_type', ['feedforward', 'rbfnetwork', 'neat', 'pnn'])
    def test_regression_methods(self, regression_dataset, fast_config, method_type):
        model = prepared_model(regression_dataset, fast_config, method_type)

        best = model.crossvalidate(3, True)

        assert best is not None
        assert np.isfinite(model.cross_validation_result.mean_score)

    def test_iterations_are_capped(self, classification_dataset, fast_config):
        fast_config.training.EARLY_STOPPING_MIN_IMPROVEMENT = -2.0
        model = prepared_model(classification_dataset, fast_config, 'feedforward')
        report = RecordingReport()

        model.crossvalidate(3, True, report=report)

        iterations = [m for m in report.messages if "Iteration #" in m]
        assert len(iterations) == 3 * fast_config.training.MAX_ITERATIONS
        assert report.messages[0] == "Fold #1"
        assert report.messages[-1].startswith("Cross-validated score:")

    def test_same_seed_same_scores(self, regression_dataset, fast_config):
        first = prepared_model(regression_dataset, fast_config, 'svm')
        first.crossvalidate(4, True, seed=9)
        second = prepared_model(regression_dataset, fast_config, 'svm')
        second.crossvalidate(4, True, seed=9)

        assert first.cross_validation_result.scores == pytest.approx(second.cross_validation_result.scores)

    def test_parallel_folds(self, classification_dataset, fast_config):
        model = prepared_model(classification_dataset, fast_config, 'pnn')

        best = model.crossvalidate(3, True, n_jobs=2)

        assert isinstance(best, PNNClassifier)
        assert len(model.cross_validation_result.folds) == 3

    def test_explicit_architecture_and_training(self, regression_dataset, fast_config):
        """Test overriding the suggested architecture and training"""
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm', "?->R(kernel=linear)->?", 'svm', '')

        assert model.state == ModelState.TRAINING_SELECTED
        model.hold_back_validation(0.3, True, 1)
        assert model.state == ModelState.READY

        best = model.crossvalidate(3, False)

        assert best.estimator.kernel == 'linear'

    def test_explicit_training_mismatch(self, regression_dataset, fast_config):
        model = AutoModel(regression_dataset, config=fast_config)
        model.select_method(regression_dataset, 'svm', None, 'rprop', '')
        model.hold_back_validation(0.3, True, 1)

        with pytest.raises(UnsupportedConfigurationError):
            model.crossvalidate(3, True)

    def test_regressor_for_nominal_output(self, classification_dataset, fast_config):
        model = AutoModel(classification_dataset, config=fast_config)
        model.select_method(classification_dataset, 'svm', "?->R->?")
        model.hold_back_validation(0.2, True, 1)
        model.select_training_type(classification_dataset)

        with pytest.raises(TypeMismatchError):
            model.crossvalidate(3, True)

    def test_mlflow_tracking(self, regression_dataset, fast_config):
        fast_config.mlflow.ENABLED = True
        model = prepared_model(regression_dataset, fast_config, 'svm')

        with mock.patch('mlflow.set_tracking_uri') as set_tracking_uri, \
             mock.patch('mlflow.set_experiment'), \
             mock.patch('mlflow.start_run') as start_run, \
             mock.patch('mlflow.log_param') as log_param, \
             mock.patch('mlflow.log_metric'):
            model.crossvalidate(3, True)

        set_tracking_uri.assert_called_once_with(fast_config.mlflow.TRACKING_URI)
        start_run.assert_called_once()
        log_param.assert_any_call('training_type', 'svm')
