# tests/test_dataset.py
import numpy as np
import pandas as pd
import pytest

from automodel.data.columns import ColumnDefinition, ColumnRole, ColumnType
from automodel.data.dataset import DataDivision, MatrixDataset, VersatileDataset, make_random_source
from automodel.data.normalizers import (
    BasicNormalizationStrategy, IndexedNormalizer, OneOfNNormalizer, RangeNormalizer
)
from automodel.errors import InvalidArgumentError, OrderingViolationError, UnsupportedConfigurationError
from automodel.method_config import FeedforwardConfig, SVMConfig
from automodel.model import AutoModel


class TestColumns:

    def test_type_inference(self, regression_dataset, classification_dataset):
        """Test data types inferred from pandas dtypes"""
        assert regression_dataset.columns['target'].data_type == ColumnType.continuous
        assert classification_dataset.columns['target'].data_type == ColumnType.nominal
        assert classification_dataset.columns['feature_0'].data_type == ColumnType.continuous

    def test_analyze_statistics(self):
        column = ColumnDefinition(name='x', data_type=ColumnType.continuous)
        column.analyze(pd.Series([1.0, 2.0, 3.0, np.nan]))

        assert column.count == 3
        assert column.low == 1.0
        assert column.high == 3.0
        assert column.mean == pytest.approx(2.0)

    def test_analyze_classes(self, classification_dataset):
        assert classification_dataset.columns['target'].classes == ['no', 'yes']

    def test_roles(self, classification_dataset):
        helper = classification_dataset.norm_helper

        assert [c.name for c in helper.output_columns] == ['target']
        assert len(helper.input_columns) == 4
        assert all(c.role == ColumnRole.input for c in helper.input_columns)
        assert helper.output_columns[0].role == ColumnRole.predicted

    def test_unknown_column(self, regression_frame):
        dataset = VersatileDataset(regression_frame)

        with pytest.raises(InvalidArgumentError):
            dataset.define_source_column('missing')


class TestNormalizers:

    def test_range_normalizer(self):
        column = ColumnDefinition(name='x', data_type=ColumnType.continuous)
        column.analyze(pd.Series([0.0, 5.0, 10.0]))

        result = RangeNormalizer(-1, 1).normalize_column(column, pd.Series([0.0, 5.0, 10.0]))

        assert result.shape == (3, 1)
        assert result[:, 0] == pytest.approx([-1.0, 0.0, 1.0])

    def test_range_normalizer_needs_analysis(self):
        column = ColumnDefinition(name='x', data_type=ColumnType.continuous)

        with pytest.raises(UnsupportedConfigurationError):
            RangeNormalizer().normalize_column(column, pd.Series([1.0]))

    def test_one_of_n_normalizer(self):
        column = ColumnDefinition(name='c', data_type=ColumnType.nominal)
        column.analyze(pd.Series(['a', 'b', 'c']))

        result = OneOfNNormalizer(-1, 1).normalize_column(column, pd.Series(['b', 'a']))

        assert OneOfNNormalizer().output_size(column) == 3
        np.testing.assert_allclose(result, [[-1, 1, -1], [1, -1, -1]])

    def test_indexed_normalizer(self):
        column = ColumnDefinition(name='c', data_type=ColumnType.nominal)
        column.analyze(pd.Series(['b', 'a', 'c']))

        result = IndexedNormalizer().normalize_column(column, pd.Series(['c', 'a']))

        np.testing.assert_allclose(result[:, 0], [2, 0])

    def test_missing_normalizer(self):
        column = ColumnDefinition(name='c', data_type=ColumnType.ordinal)

        with pytest.raises(UnsupportedConfigurationError):
            BasicNormalizationStrategy().find_normalizer(column, True)


class TestVersatileDataset:

    def test_normalized_counts(self, classification_dataset):
        """Test normalized widths follow the assigned strategy"""
        helper = classification_dataset.norm_helper

        helper.set_strategy(SVMConfig().suggest_normalization_strategy(classification_dataset, "?->C->?"))
        assert helper.calculate_normalized_input_count() == 4
        assert helper.calculate_normalized_output_count() == 1

        helper.set_strategy(FeedforwardConfig().suggest_normalization_strategy(classification_dataset, ""))
        assert helper.calculate_normalized_output_count() == 2

    def test_counts_need_strategy(self, regression_dataset):
        with pytest.raises(OrderingViolationError):
            regression_dataset.norm_helper.calculate_normalized_input_count()

    def test_matrix_needs_normalization(self, regression_dataset):
        with pytest.raises(OrderingViolationError):
            regression_dataset.as_matrix_dataset()

    def test_normalize(self, regression_dataset):
        regression_dataset.norm_helper.set_strategy(
            SVMConfig().suggest_normalization_strategy(regression_dataset, "?->R->?")
        )
        data = regression_dataset.normalize()

        assert data.shape == (80, 4)
        assert data.min() == pytest.approx(0.0)
        assert data.max() == pytest.approx(1.0)
        assert regression_dataset.is_normalized

        # a new strategy invalidates the normalized data
        regression_dataset.norm_helper.set_strategy(BasicNormalizationStrategy())
        assert not regression_dataset.is_normalized

    def test_divide(self, classification_dataset):
        """Test divisions are disjoint and cover every row"""
        classification_dataset.norm_helper.set_strategy(
            SVMConfig().suggest_normalization_strategy(classification_dataset, "?->C->?")
        )
        classification_dataset.normalize()

        divisions = [DataDivision(0.8), DataDivision(0.2)]
        classification_dataset.divide(divisions, True, make_random_source(42))

        assert divisions[0].count == 72
        assert divisions[1].count == 18
        training, validation = divisions[0].dataset.mask, divisions[1].dataset.mask
        assert set(training).isdisjoint(validation)
        assert sorted(np.concatenate([training, validation])) == list(range(90))

    def test_divide_is_deterministic(self, classification_dataset):
        classification_dataset.norm_helper.set_strategy(
            SVMConfig().suggest_normalization_strategy(classification_dataset, "?->C->?")
        )
        classification_dataset.normalize()

        first = [DataDivision(0.7), DataDivision(0.3)]
        second = [DataDivision(0.7), DataDivision(0.3)]
        classification_dataset.divide(first, True, make_random_source(5))
        classification_dataset.divide(second, True, make_random_source(5))

        np.testing.assert_array_equal(first[1].dataset.mask, second[1].dataset.mask)

    def test_divide_without_shuffle(self, regression_dataset):
        regression_dataset.norm_helper.set_strategy(
            SVMConfig().suggest_normalization_strategy(regression_dataset, "?->R->?")
        )
        regression_dataset.normalize()

        divisions = [DataDivision(0.5), DataDivision(0.5)]
        regression_dataset.divide(divisions, False)

        np.testing.assert_array_equal(divisions[0].dataset.mask, np.arange(40))

    def test_empty_division(self, regression_dataset):
        regression_dataset.norm_helper.set_strategy(
            SVMConfig().suggest_normalization_strategy(regression_dataset, "?->R->?")
        )
        regression_dataset.normalize()

        with pytest.raises(InvalidArgumentError):
            regression_dataset.divide([DataDivision(1.0), DataDivision(0.0)], False)


class TestMatrixDataset:

    def test_views(self):
        data = np.arange(12, dtype=float).reshape(4, 3)
        dataset = MatrixDataset(data, 2, 1)

        subset = dataset.subset([3, 1])

        assert len(subset) == 2
        np.testing.assert_array_equal(subset.input, [[9, 10], [3, 4]])
        np.testing.assert_array_equal(subset.ideal, [[11], [5]])
        np.testing.assert_array_equal(subset.subset([1]).mask, [1])


class TestColumnRoles:

    def test_reassigning_role_moves_column(self, classification_frame):
        """Test a column defined as input then output is only an output"""
        dataset = VersatileDataset(classification_frame)
        dataset.analyze()

        dataset.define_input('target')
        dataset.define_input('feature_0')
        dataset.define_output('target')

        helper = dataset.norm_helper
        assert [c.name for c in helper.input_columns] == ['feature_0']
        assert [c.name for c in helper.output_columns] == ['target']
        assert dataset.columns['target'].role == ColumnRole.predicted

    def test_repeated_role_is_ignored(self, classification_frame):
        dataset = VersatileDataset(classification_frame)
        dataset.analyze()

        dataset.define_output('target')
        dataset.define_output('target')
        for name in ('feature_0', 'feature_1', 'feature_0'):
            dataset.define_input(name)

        assert len(dataset.norm_helper.output_columns) == 1
        assert [c.name for c in dataset.norm_helper.input_columns] == ['feature_0', 'feature_1']
        assert SVMConfig().suggest_model_architecture(dataset) == "?->C->?"


class TestMissingValues:

    @pytest.fixture
    def frame_with_missing(self, classification_frame):
        frame = classification_frame.copy()
        frame['color'] = ['red', 'blue', 'red'] * 30
        frame.loc[5, 'color'] = np.nan
        return frame

    def test_analyze_counts_missing(self, frame_with_missing):
        column = ColumnDefinition(name='color', data_type=ColumnType.nominal)
        column.analyze(frame_with_missing['color'])

        assert column.missing == 1
        assert column.count == 89
        assert column.classes == ['blue', 'red']
        assert column.mode == 'red'

    def test_missing_nominal_input(self, frame_with_missing):
        """Test missing nominal inputs normalize without unknown classes"""
        column = ColumnDefinition(name='color', data_type=ColumnType.nominal)
        column.analyze(frame_with_missing['color'])
        values = frame_with_missing['color'].iloc[3:6]

        one_of_n = OneOfNNormalizer(-1, 1).normalize_column(column, values)
        indexed = IndexedNormalizer().normalize_column(column, values)

        np.testing.assert_allclose(one_of_n, [[-1, 1], [1, -1], [-1, -1]])
        np.testing.assert_allclose(indexed[:, 0], [1, 0, 1])

    def test_missing_nominal_input_in_dataset(self, frame_with_missing):
        dataset = VersatileDataset(frame_with_missing)
        dataset.analyze()
        dataset.define_single_output_others_input('target')
        dataset.norm_helper.set_strategy(SVMConfig().suggest_normalization_strategy(dataset, "?->C->?"))

        data = dataset.normalize()

        assert data.shape == (90, 7)
        assert not np.isnan(data).any()

    def test_missing_nominal_target(self, classification_frame, fast_config):
        """Test a blank predicted class is reported as an invalid argument"""
        classification_frame.loc[3, 'target'] = np.nan
        dataset = VersatileDataset(classification_frame)
        dataset.analyze()
        dataset.define_single_output_others_input('target')

        model = AutoModel(dataset, config=fast_config)
        model.select_method(dataset, 'svm')

        with pytest.raises(InvalidArgumentError, match="missing values"):
            model.hold_back_validation(0.2, True, 1)
