# automodel/methods/factory.py
import logging
from enum import Enum
from typing import Union

from automodel.errors import UnsupportedConfigurationError
from automodel.methods.architecture import get_float, get_int, parse_architecture, parse_params
from automodel.methods.base import MLMethod
from automodel.methods.networks import FeedforwardNetwork, NEATNetwork, RBFNetwork
from automodel.methods.pnn import PNNClassifier, PNNRegressor
from automodel.methods.svm import SVMClassifier, SVMRegressor

logger = logging.getLogger(__name__)


class MethodType(str, Enum):
    FEEDFORWARD = "feedforward"
    SVM = "svm"
    RBFNETWORK = "rbfnetwork"
    NEAT = "neat"
    PNN = "pnn"


class MethodFactory:
    """Builds untrained model instances from an architecture string"""

    def create(self, method_type: Union[str, MethodType], architecture: str,
               input_count: int, output_count: int, random_state=None) -> MLMethod:
        try:
            method_type = MethodType(method_type)
        except ValueError:
            raise UnsupportedConfigurationError(f"Unknown method type: {method_type}")

        if input_count < 1 or output_count < 1:
            raise UnsupportedConfigurationError(
                f"Cannot create {method_type.value} with {input_count} inputs and {output_count} outputs"
            )

        builders = {
            MethodType.FEEDFORWARD: self._create_feedforward,
            MethodType.SVM: self._create_svm,
            MethodType.RBFNETWORK: self._create_rbf,
            MethodType.NEAT: self._create_neat,
            MethodType.PNN: self._create_pnn,
        }
        method = builders[method_type](architecture, input_count, output_count, random_state)
        logger.debug(f"Created {method!r} from '{architecture}'")
        return method

    def _create_feedforward(self, architecture, input_count, output_count, random_state):
        layers = parse_architecture(architecture)
        if len(layers) < 2 or not layers[0].is_placeholder or not layers[-1].is_placeholder:
            raise UnsupportedConfigurationError(
                f"Feedforward architecture must start and end with '?': {architecture}"
            )

        hidden, activations = [], []
        for layer in layers[1:-1]:
            if layer.count is not None:
                hidden.append(layer.count)
            else:
                activations.append(layer.name)

        # sklearn shares one activation across hidden layers
        activation = activations[0] if activations else 'TANH'
        if any(a != activation for a in activations):
            raise UnsupportedConfigurationError(f"Mixed activation functions are not supported: {architecture}")

        return FeedforwardNetwork(input_count, output_count, hidden, activation, random_state)

    def _create_svm(self, architecture, input_count, output_count, random_state):
        layers = parse_architecture(architecture)
        if len(layers) != 3 or layers[1].name not in ('C', 'R'):
            raise UnsupportedConfigurationError(f"SVM architecture must be '?->C->?' or '?->R->?': {architecture}")

        params = layers[1].params
        kernel = params.get('kernel', 'rbf')
        C = get_float(params, 'c', 1.0)
        if layers[1].name == 'C':
            return SVMClassifier(input_count, output_count, kernel=kernel, C=C)
        return SVMRegressor(input_count, output_count, kernel=kernel, C=C)

    def _create_rbf(self, architecture, input_count, output_count, random_state):
        layers = parse_architecture(architecture)
        if len(layers) != 3 or layers[1].name != 'GAUSSIAN':
            raise UnsupportedConfigurationError(f"RBF architecture must be '?->GAUSSIAN(c=n)->?': {architecture}")

        params = layers[1].params
        gamma = get_float(params, 'gamma', 0.0) or None
        return RBFNetwork(input_count, output_count, get_int(params, 'c', input_count * 2),
                          gamma=gamma, random_state=random_state)

    def _create_neat(self, architecture, input_count, output_count, random_state):
        params = parse_params(architecture)
        return NEATNetwork(
            input_count, output_count,
            hidden_count=get_int(params, 'hidden', input_count + output_count),
            cycles=get_int(params, 'cycles', 4),
            random_state=random_state,
        )

    def _create_pnn(self, architecture, input_count, output_count, random_state):
        layers = parse_architecture(architecture)
        if len(layers) != 3 or layers[1].name not in ('C', 'R'):
            raise UnsupportedConfigurationError(
                f"PNN architecture must be '?->C(kernel=gaussian)->?' or '?->R(kernel=gaussian)->?': {architecture}"
            )

        params = layers[1].params
        if params.get('kernel', 'gaussian').lower() != 'gaussian':
            raise UnsupportedConfigurationError(f"Only the gaussian PNN kernel is supported: {architecture}")
        sigma = get_float(params, 'sigma', 1.0)
        if layers[1].name == 'C':
            return PNNClassifier(input_count, output_count, sigma=sigma)
        return PNNRegressor(input_count, output_count, sigma=sigma)
