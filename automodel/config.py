# automodel/config.py
import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)

@dataclass
class PathConfig:
    """Configuration for project paths"""
    PROJECT_ROOT: Path
    LOGS_DIR: Path

@dataclass
class MLFlowConfig:
    """Configuration for MLflow tracking of cross-validation runs"""
    ENABLED: bool
    TRACKING_URI: str
    EXPERIMENT_NAME: str

@dataclass
class CrossValidationConfig:
    """Configuration for hold-back and k-fold splitting"""
    K_FOLDS: int
    SHUFFLE: bool
    VALIDATION_PERCENT: float
    RANDOM_SEED: int
    N_JOBS: int

@dataclass
class TrainingConfig:
    """Configuration for per-fold training sessions"""
    MAX_ITERATIONS: int
    EARLY_STOPPING_CHECK_FREQUENCY: int
    EARLY_STOPPING_MIN_IMPROVEMENT: float

class Config:
    """Central configuration manager for model selection runs"""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_file: Optional path to JSON config file to override defaults
        """
        self._load_default_config()

        if config_file and os.path.exists(config_file):
            self._load_config_file(config_file)

        self._load_environment_variables()

    def _load_default_config(self):
        """Load default configuration values"""

        project_root = Path(__file__).parent.parent
        self.paths = PathConfig(
            PROJECT_ROOT=project_root,
            LOGS_DIR=project_root / "logs"
        )

        self.mlflow = MLFlowConfig(
            ENABLED=False,
            TRACKING_URI="sqlite:///mlflow.db",
            EXPERIMENT_NAME="automodel_crossvalidation"
        )

        self.crossvalidation = CrossValidationConfig(
            K_FOLDS=5,
            SHUFFLE=True,
            VALIDATION_PERCENT=0.3,
            RANDOM_SEED=1001,
            N_JOBS=1
        )

        self.training = TrainingConfig(
            MAX_ITERATIONS=500,
            EARLY_STOPPING_CHECK_FREQUENCY=5,
            EARLY_STOPPING_MIN_IMPROVEMENT=0.0
        )

        # Additional settings
        self.logging_level = "INFO"
        self.debug_mode = False

    def _load_config_file(self, config_file: str):
        """Load configuration from JSON file"""
        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load config file {config_file}: {e}")
            return

        # Update configurations with values from file
        for section, values in config_data.items():
            if not hasattr(self, section):
                continue
            config_obj = getattr(self, section)
            if isinstance(values, dict):
                for key, value in values.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)
            else:
                setattr(self, section, values)

    def _load_environment_variables(self):
        """Load configuration from environment variables"""

        # MLflow settings
        if os.getenv("MLFLOW_TRACKING_URI"):
            self.mlflow.TRACKING_URI = os.getenv("MLFLOW_TRACKING_URI")

        if os.getenv("MLFLOW_EXPERIMENT_NAME"):
            self.mlflow.EXPERIMENT_NAME = os.getenv("MLFLOW_EXPERIMENT_NAME")

        if os.getenv("MLFLOW_ENABLED"):
            self.mlflow.ENABLED = os.getenv("MLFLOW_ENABLED").lower() == 'true'

        # Cross-validation settings
        if os.getenv("CV_FOLDS"):
            self.crossvalidation.K_FOLDS = int(os.getenv("CV_FOLDS"))

        if os.getenv("CV_SHUFFLE"):
            self.crossvalidation.SHUFFLE = os.getenv("CV_SHUFFLE").lower() == 'true'

        if os.getenv("VALIDATION_PERCENT"):
            self.crossvalidation.VALIDATION_PERCENT = float(os.getenv("VALIDATION_PERCENT"))

        if os.getenv("RANDOM_SEED"):
            self.crossvalidation.RANDOM_SEED = int(os.getenv("RANDOM_SEED"))

        if os.getenv("N_JOBS"):
            self.crossvalidation.N_JOBS = int(os.getenv("N_JOBS"))

        # Training settings
        if os.getenv("MAX_ITERATIONS"):
            self.training.MAX_ITERATIONS = int(os.getenv("MAX_ITERATIONS"))

        # General settings
        if os.getenv("LOG_LEVEL"):
            self.logging_level = os.getenv("LOG_LEVEL")

        if os.getenv("DEBUG_MODE"):
            self.debug_mode = os.getenv("DEBUG_MODE").lower() == 'true'

    def get_model_config(self) -> Dict[str, Any]:
        """Flat view of the settings the orchestrator consumes"""
        return {
            'k_folds': self.crossvalidation.K_FOLDS,
            'shuffle': self.crossvalidation.SHUFFLE,
            'validation_percent': self.crossvalidation.VALIDATION_PERCENT,
            'random_seed': self.crossvalidation.RANDOM_SEED,
            'n_jobs': self.crossvalidation.N_JOBS,
            'max_iterations': self.training.MAX_ITERATIONS,
            'check_frequency': self.training.EARLY_STOPPING_CHECK_FREQUENCY,
            'min_improvement': self.training.EARLY_STOPPING_MIN_IMPROVEMENT,
            'track_with_mlflow': self.mlflow.ENABLED
        }

    def save_config(self, config_file: str):
        """Save current configuration to JSON file"""
        config_dict = {}

        for attr_name in ('paths', 'mlflow', 'crossvalidation', 'training'):
            attr_value = getattr(self, attr_name)
            config_dict[attr_name] = {}
            for field_name, field_value in attr_value.__dict__.items():
                if isinstance(field_value, Path):
                    config_dict[attr_name][field_name] = str(field_value)
                else:
                    config_dict[attr_name][field_name] = field_value

        config_dict['logging_level'] = self.logging_level
        config_dict['debug_mode'] = self.debug_mode

        with open(config_file, 'w') as f:
            json.dump(config_dict, f, indent=2)

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if self.crossvalidation.K_FOLDS < 2:
            issues.append(f"CV folds must be >= 2: {self.crossvalidation.K_FOLDS}")

        if self.crossvalidation.VALIDATION_PERCENT <= 0 or self.crossvalidation.VALIDATION_PERCENT >= 1:
            issues.append(f"Invalid validation percent: {self.crossvalidation.VALIDATION_PERCENT}")

        if self.crossvalidation.N_JOBS == 0:
            issues.append("N_JOBS must not be 0 (use 1 for sequential, -1 for all cores)")

        if self.training.MAX_ITERATIONS < 1:
            issues.append(f"Max iterations must be >= 1: {self.training.MAX_ITERATIONS}")

        if self.training.EARLY_STOPPING_CHECK_FREQUENCY < 1:
            issues.append(f"Early stopping check frequency must be >= 1: {self.training.EARLY_STOPPING_CHECK_FREQUENCY}")

        return issues

    def __str__(self) -> str:
        """String representation of configuration"""
        return f"Config(k_folds={self.crossvalidation.K_FOLDS}, seed={self.crossvalidation.RANDOM_SEED}, debug={self.debug_mode})"

# Global configuration instance
_config = None

def get_config(config_file: Optional[str] = None) -> Config:
    """Get global configuration instance (singleton pattern)"""
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config

def reload_config(config_file: Optional[str] = None) -> Config:
    """Reload configuration (useful for testing)"""
    global _config
    _config = Config(config_file)
    return _config

# Example configuration file template
CONFIG_TEMPLATE = {
    "crossvalidation": {
        "K_FOLDS": 5,
        "SHUFFLE": True,
        "VALIDATION_PERCENT": 0.3,
        "RANDOM_SEED": 1001
    },
    "training": {
        "MAX_ITERATIONS": 500,
        "EARLY_STOPPING_CHECK_FREQUENCY": 5
    },
    "mlflow": {
        "ENABLED": False,
        "TRACKING_URI": "sqlite:///mlflow.db",
        "EXPERIMENT_NAME": "my_model_selection"
    }
}

def create_config_template(output_file: str):
    """Create a configuration template file"""
    with open(output_file, 'w') as f:
        json.dump(CONFIG_TEMPLATE, f, indent=2)
