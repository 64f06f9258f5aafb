# automodel/method_config.py
"""Per-algorithm policies used to auto-configure a model for a dataset.

Each ``MethodConfig`` looks at the dataset's column roles and types and
suggests an architecture, a normalization strategy, a training type with its
arguments and the output width the model must be built with.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Union

from automodel.data.columns import ColumnType
from automodel.data.dataset import VersatileDataset
from automodel.data.normalizers import (
    BasicNormalizationStrategy, IndexedNormalizer, NormalizationStrategy,
    OneOfNNormalizer, RangeNormalizer
)
from automodel.errors import UnknownAlgorithmError, UnsupportedConfigurationError
from automodel.methods.factory import MethodType
from automodel.training.factory import TrainingType

logger = logging.getLogger(__name__)


def _hidden_count(dataset: VersatileDataset) -> int:
    helper = dataset.norm_helper
    return int((len(helper.input_columns) + len(helper.output_columns)) * 1.5)


def _single_nominal_output(dataset: VersatileDataset) -> bool:
    outputs = dataset.norm_helper.output_columns
    return len(outputs) == 1 and outputs[0].data_type == ColumnType.nominal


class MethodConfig(ABC):
    """Auto-configuration policy for one algorithm.

    Stateless: every method takes the dataset it should configure for.
    """

    method_name: MethodType = None

    @abstractmethod
    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        pass

    def suggest_normalization_strategy(self, dataset: VersatileDataset, architecture: str) -> NormalizationStrategy:
        """Default assignment; variants override individual normalizers"""
        result = BasicNormalizationStrategy()
        result.assign_input_normalizer(ColumnType.continuous, RangeNormalizer(0, 1))
        result.assign_input_normalizer(ColumnType.nominal, OneOfNNormalizer(0, 1))
        result.assign_input_normalizer(ColumnType.ordinal, OneOfNNormalizer(0, 1))

        result.assign_output_normalizer(ColumnType.continuous, RangeNormalizer(0, 1))
        result.assign_output_normalizer(ColumnType.nominal, IndexedNormalizer())
        result.assign_output_normalizer(ColumnType.ordinal, OneOfNNormalizer(0, 1))
        return result

    @abstractmethod
    def suggest_training_type(self) -> str:
        pass

    def suggest_training_args(self, training_type: str) -> str:
        return ""

    def determine_output_count(self, dataset: VersatileDataset) -> int:
        return dataset.norm_helper.calculate_normalized_output_count()

    def _require_outputs(self, dataset: VersatileDataset):
        if not dataset.norm_helper.output_columns:
            raise UnsupportedConfigurationError(
                f"{self.method_name.value} needs at least one predicted column"
            )


class FeedforwardConfig(MethodConfig):
    method_name = MethodType.FEEDFORWARD

    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        self._require_outputs(dataset)
        return f"?:B->TANH->{_hidden_count(dataset)}:B->TANH->?"

    def suggest_normalization_strategy(self, dataset: VersatileDataset, architecture: str) -> NormalizationStrategy:
        # tanh activations, so everything lives in [-1, 1]
        result = BasicNormalizationStrategy()
        result.assign_input_normalizer(ColumnType.continuous, RangeNormalizer(-1, 1))
        result.assign_input_normalizer(ColumnType.nominal, OneOfNNormalizer(-1, 1))
        result.assign_input_normalizer(ColumnType.ordinal, OneOfNNormalizer(-1, 1))

        result.assign_output_normalizer(ColumnType.continuous, RangeNormalizer(-1, 1))
        result.assign_output_normalizer(ColumnType.nominal, OneOfNNormalizer(-1, 1))
        result.assign_output_normalizer(ColumnType.ordinal, OneOfNNormalizer(-1, 1))
        return result

    def suggest_training_type(self) -> str:
        return TrainingType.RPROP.value


class SVMConfig(MethodConfig):
    method_name = MethodType.SVM

    def _check_single_output(self, dataset: VersatileDataset):
        self._require_outputs(dataset)
        if len(dataset.norm_helper.output_columns) > 1:
            raise UnsupportedConfigurationError("SVM does not support multiple output columns.")

    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        self._check_single_output(dataset)
        marker = "C" if _single_nominal_output(dataset) else "R"
        return f"?->{marker}->?"

    def suggest_normalization_strategy(self, dataset: VersatileDataset, architecture: str) -> NormalizationStrategy:
        self._check_single_output(dataset)
        return super().suggest_normalization_strategy(dataset, architecture)

    def suggest_training_type(self) -> str:
        return TrainingType.SVM.value


class RBFNetworkConfig(MethodConfig):
    method_name = MethodType.RBFNETWORK

    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        self._require_outputs(dataset)
        return f"?->GAUSSIAN(c={_hidden_count(dataset)})->?"

    def suggest_normalization_strategy(self, dataset: VersatileDataset, architecture: str) -> NormalizationStrategy:
        result = super().suggest_normalization_strategy(dataset, architecture)
        # classification reads the winning output, so one column per class
        result.assign_output_normalizer(ColumnType.nominal, OneOfNNormalizer(0, 1))
        return result

    def suggest_training_type(self) -> str:
        return TrainingType.RPROP.value


class NEATConfig(MethodConfig):
    method_name = MethodType.NEAT

    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        self._require_outputs(dataset)
        return "cycles=4"

    def suggest_normalization_strategy(self, dataset: VersatileDataset, architecture: str) -> NormalizationStrategy:
        result = super().suggest_normalization_strategy(dataset, architecture)
        result.assign_output_normalizer(ColumnType.nominal, OneOfNNormalizer(0, 1))
        return result

    def suggest_training_type(self) -> str:
        return TrainingType.NEAT.value


class PNNConfig(MethodConfig):
    method_name = MethodType.PNN

    def suggest_model_architecture(self, dataset: VersatileDataset) -> str:
        self._require_outputs(dataset)
        marker = "C" if _single_nominal_output(dataset) else "R"
        return f"?->{marker}(kernel=gaussian)->?"

    def suggest_training_type(self) -> str:
        return TrainingType.PNN.value

    def determine_output_count(self, dataset: VersatileDataset) -> int:
        if _single_nominal_output(dataset):
            return len(dataset.norm_helper.output_columns[0].classes)
        return dataset.norm_helper.calculate_normalized_output_count()


class MethodConfigRegistry:
    """Lookup table from algorithm identifier to its ``MethodConfig``.

    Built with one policy per ``MethodType``; ``register`` adds or replaces
    entries for additional algorithms.
    """

    def __init__(self):
        self._configs: Dict[str, MethodConfig] = {}
        for config in (FeedforwardConfig(), SVMConfig(), RBFNetworkConfig(), NEATConfig(), PNNConfig()):
            self.register(config.method_name, config)

    @staticmethod
    def _key(method_type: Union[str, MethodType]) -> str:
        return method_type.value if isinstance(method_type, MethodType) else str(method_type).lower()

    def register(self, method_type: Union[str, MethodType], config: MethodConfig):
        self._configs[self._key(method_type)] = config

    def lookup(self, method_type: Union[str, MethodType]) -> MethodConfig:
        key = self._key(method_type)
        if key not in self._configs:
            raise UnknownAlgorithmError(f"Don't know how to autoconfig method: {method_type}")
        return self._configs[key]

    def __contains__(self, method_type) -> bool:
        return self._key(method_type) in self._configs

    def names(self) -> List[str]:
        return sorted(self._configs)
