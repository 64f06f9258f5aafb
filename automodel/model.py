# automodel/model.py
import logging
from enum import Enum
from functools import partial
from typing import List, Optional, Tuple

import mlflow

from automodel.config import Config, get_config
from automodel.crossvalidation import CrossValidationResult, CrossValidator, TrainingSession
from automodel.data.columns import ColumnDefinition
from automodel.data.dataset import DataDivision, MatrixDataset, VersatileDataset, make_random_source
from automodel.data.folds import DataFold
from automodel.errors import InvalidArgumentError, OrderingViolationError
from automodel.evaluation import ErrorEvaluator
from automodel.method_config import MethodConfig, MethodConfigRegistry
from automodel.methods.factory import MethodFactory
from automodel.reporting import StatusReportable
from automodel.training.early_stopping import SimpleEarlyStoppingStrategy
from automodel.training.factory import TrainerFactory
from automodel.utils.logging_config import log_execution_time

logger = logging.getLogger(__name__)


class ModelState(Enum):
    UNCONFIGURED = "unconfigured"
    METHOD_SELECTED = "method_selected"
    TRAINING_SELECTED = "training_selected"
    READY = "ready"


_CONFIGURED = (ModelState.METHOD_SELECTED, ModelState.TRAINING_SELECTED, ModelState.READY)
_TRAINING_CHOSEN = (ModelState.TRAINING_SELECTED, ModelState.READY)


class AutoModel:
    """Selects a model type for a dataset, normalizes for it and cross-validates it.

    Calls must follow the order below; each step raises
    ``OrderingViolationError`` when its prerequisite is missing::

        model = AutoModel(dataset)
        model.select_method(dataset, 'svm')          # also sets the normalization strategy
        model.hold_back_validation(0.3, True, 1001)  # normalizes and splits
        model.select_training_type(dataset)
        best = model.crossvalidate(5, True)

    ``READY`` means a training type is chosen and a training dataset is held back.
    """

    def __init__(self, dataset: VersatileDataset,
                 registry: Optional[MethodConfigRegistry] = None,
                 method_factory: Optional[MethodFactory] = None,
                 trainer_factory: Optional[TrainerFactory] = None,
                 config: Optional[Config] = None):
        self.dataset = dataset
        self.method_configurations = registry or MethodConfigRegistry()
        self.method_factory = method_factory or MethodFactory()
        self.trainer_factory = trainer_factory or TrainerFactory()
        self.config = config or get_config()
        self.settings = self.config.get_model_config()

        self.state = ModelState.UNCONFIGURED
        self.method_config: Optional[MethodConfig] = None
        self.method_type: Optional[str] = None
        self.method_args: Optional[str] = None
        self.training_type: Optional[str] = None
        self.training_args: Optional[str] = None
        self.random_seed: int = self.settings['random_seed']

        self._training_dataset: Optional[MatrixDataset] = None
        self._validation_dataset: Optional[MatrixDataset] = None
        self.cross_validation_result: Optional[CrossValidationResult] = None

    # -- state machine ----------------------------------------------------

    def _transition(self, allowed: Tuple[ModelState, ...], target: ModelState, message: str):
        if self.state not in allowed:
            raise OrderingViolationError(message)
        logger.debug(f"{self.state.value} -> {target.value}")
        self.state = target

    def _after_training_data(self) -> ModelState:
        return ModelState.READY if self._training_dataset is not None else ModelState.TRAINING_SELECTED

    # -- column views -------------------------------------------------------

    @property
    def input_features(self) -> List[ColumnDefinition]:
        return list(self.dataset.norm_helper.input_columns)

    @property
    def predicted_features(self) -> List[ColumnDefinition]:
        return list(self.dataset.norm_helper.output_columns)

    # -- datasets -----------------------------------------------------------

    @property
    def training_dataset(self) -> Optional[MatrixDataset]:
        return self._training_dataset

    @training_dataset.setter
    def training_dataset(self, value: MatrixDataset):
        self._training_dataset = value
        if self.state == ModelState.TRAINING_SELECTED and value is not None:
            self.state = ModelState.READY

    @property
    def validation_dataset(self) -> Optional[MatrixDataset]:
        return self._validation_dataset

    @validation_dataset.setter
    def validation_dataset(self, value: MatrixDataset):
        self._validation_dataset = value

    def hold_back_validation(self, validation_percent: float, shuffle: bool, seed: int):
        """Split the normalized dataset into training and validation subsets"""
        if not 0.0 < validation_percent < 1.0:
            raise InvalidArgumentError(
                f"Validation percent must lie strictly between 0 and 1, got {validation_percent}"
            )
        if self.state == ModelState.UNCONFIGURED:
            raise OrderingViolationError(
                "Please call select_method before hold_back_validation so the dataset can be normalized."
            )
        if not self.dataset.is_normalized:
            self.dataset.normalize()

        divisions = [DataDivision(1.0 - validation_percent), DataDivision(validation_percent)]
        self.dataset.divide(divisions, shuffle, make_random_source(seed))
        self._training_dataset = divisions[0].dataset
        self._validation_dataset = divisions[1].dataset
        if self.state == ModelState.TRAINING_SELECTED:
            self.state = ModelState.READY

        logger.info(
            f"Held back {len(self._validation_dataset)} validation rows, "
            f"{len(self._training_dataset)} rows left for training"
        )

    # -- selection ----------------------------------------------------------

    def select_method(self, dataset: VersatileDataset, method_type: str,
                      method_args: Optional[str] = None,
                      training_type: Optional[str] = None,
                      training_args: Optional[str] = None):
        """Choose the model type and apply its normalization strategy to ``dataset``.

        With only ``method_type`` the architecture is suggested by the method's
        config. Passing ``method_args`` overrides the architecture, and passing
        ``training_type``/``training_args`` stores the training choice without
        asking the config.
        """
        if dataset is not self.dataset:
            raise InvalidArgumentError("select_method must be given the dataset this model was built with")

        config = self.method_configurations.lookup(method_type)
        if method_args is None:
            method_args = config.suggest_model_architecture(dataset)
        dataset.norm_helper.set_strategy(config.suggest_normalization_strategy(dataset, method_args))

        self.method_config = config
        self.method_type = config.method_name.value if config.method_name else str(method_type)
        self.method_args = method_args
        self.training_type = None
        self.training_args = None
        # held-back rows were normalized with the previous strategy
        self._training_dataset = None
        self._validation_dataset = None
        self.state = ModelState.METHOD_SELECTED
        logger.info(f"Selected method {self.method_type} with architecture '{method_args}'")

        if training_type is not None:
            logger.warning(
                f"Training type '{training_type}' was given explicitly and is not checked "
                f"against {self.method_type} until a trainer is created"
            )
            self.training_type = training_type
            self.training_args = training_args or ""
            self.state = ModelState.TRAINING_SELECTED

    def select_training_type(self, dataset: VersatileDataset):
        """Use the training type and arguments suggested for the selected method"""
        if self.state == ModelState.UNCONFIGURED:
            raise OrderingViolationError("Please select your training method, before your training type.")
        training_type = self.method_config.suggest_training_type()
        self.select_training(dataset, training_type, self.method_config.suggest_training_args(training_type))

    def select_training(self, dataset: VersatileDataset, training_type: str, training_args: str = ""):
        self._transition(_CONFIGURED, self._after_training_data(),
                         "Please select your training method, before your training type.")
        self.training_type = training_type
        self.training_args = training_args or ""
        logger.info(f"Selected training {training_type} ({self.training_args or 'default args'})")

    # -- construction -------------------------------------------------------

    def create_method(self, random_state=None):
        """A fresh, untrained model sized for the normalized dataset"""
        if self.state == ModelState.UNCONFIGURED:
            raise OrderingViolationError(
                "Please call select_method first to choose what type of method you wish to use."
            )
        return self.method_factory.create(
            self.method_type, self.method_args,
            self.dataset.norm_helper.calculate_normalized_input_count(),
            self.method_config.determine_output_count(self.dataset),
            random_state=random_state,
        )

    def create_trainer(self, method, dataset: MatrixDataset):
        if self.state not in _TRAINING_CHOSEN:
            raise OrderingViolationError("Please call select_training first to choose how to train.")
        return self.trainer_factory.create(
            method, dataset, self.training_type, self.training_args,
            max_iterations=self.settings['max_iterations'],
        )

    # -- fitting ------------------------------------------------------------

    def calculate_error(self, method, data: MatrixDataset) -> float:
        return ErrorEvaluator(self.dataset.norm_helper.output_columns).evaluate(method, data)

    def fit_fold(self, k: int, fold_number: int, fold: DataFold, report: Optional[StatusReportable] = None):
        session = TrainingSession(
            k, fold_number, fold,
            create_method=partial(self.create_method, random_state=self.random_seed + fold_number),
            create_trainer=self.create_trainer,
            error_function=self.calculate_error,
            report=report,
            early_stopping_factory=partial(
                SimpleEarlyStoppingStrategy,
                check_frequency=self.settings['check_frequency'],
                min_improvement=self.settings['min_improvement'],
            ),
        )
        session.run()
        return fold

    @log_execution_time
    def crossvalidate(self, k: Optional[int] = None, shuffle: Optional[bool] = None,
                      report: Optional[StatusReportable] = None, seed: Optional[int] = None,
                      n_jobs: Optional[int] = None):
        """Fit every fold of a k-fold split of the training dataset; return the best model"""
        if self._training_dataset is None:
            raise OrderingViolationError(
                "Please call hold_back_validation (or assign training_dataset) before crossvalidate."
            )
        if self.state != ModelState.READY:
            raise OrderingViolationError("Please call select_training first to choose how to train.")

        k = self.settings['k_folds'] if k is None else k
        shuffle = self.settings['shuffle'] if shuffle is None else shuffle
        if seed is not None:
            self.random_seed = seed
        n_jobs = self.settings['n_jobs'] if n_jobs is None else n_jobs

        track = self.settings['track_with_mlflow']
        if track:
            mlflow.set_tracking_uri(self.config.mlflow.TRACKING_URI)

        validator = CrossValidator(
            self.fit_fold, report=report, n_jobs=n_jobs, track=track,
            run_params={
                'method_type': self.method_type,
                'method_args': self.method_args,
                'training_type': self.training_type,
                'training_args': self.training_args,
            },
            experiment_name=self.config.mlflow.EXPERIMENT_NAME,
        )
        self.cross_validation_result = validator.run(self._training_dataset, k, shuffle, self.random_seed)
        return self.cross_validation_result.best_method
