# tests/conftest.py
import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification, make_regression

from automodel.config import Config
from automodel.data.dataset import VersatileDataset


@pytest.fixture
def regression_frame():
    """Small regression dataset with a continuous target"""
    X, y = make_regression(n_samples=80, n_features=3, noise=0.1, random_state=42)

    df = pd.DataFrame(X, columns=[f'feature_{i}' for i in range(3)])
    df['target'] = y

    return df


@pytest.fixture
def classification_frame():
    """Small binary classification dataset with a string target"""
    X, y = make_classification(
        n_samples=90, n_features=4, n_informative=3, n_redundant=0,
        n_classes=2, random_state=42
    )

    df = pd.DataFrame(X, columns=[f'feature_{i}' for i in range(4)])
    df['target'] = np.where(y == 1, 'yes', 'no')

    return df


@pytest.fixture
def regression_dataset(regression_frame):
    dataset = VersatileDataset(regression_frame)
    dataset.analyze()
    dataset.define_single_output_others_input('target')
    return dataset


@pytest.fixture
def classification_dataset(classification_frame):
    dataset = VersatileDataset(classification_frame)
    dataset.analyze()
    dataset.define_single_output_others_input('target')
    return dataset


@pytest.fixture
def fast_config():
    """Default settings with short training runs and tracking off"""
    config = Config()
    config.training.MAX_ITERATIONS = 15
    config.training.EARLY_STOPPING_CHECK_FREQUENCY = 5
    config.crossvalidation.N_JOBS = 1
    config.mlflow.ENABLED = False
    return config
