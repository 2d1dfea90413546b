"""Test configuration for pytest."""
import os
import sys
import logging
from typing import Dict, Any

import pytest
import pandas as pd
import numpy as np

# Add package root to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pdp_toolkit.utils.logger import PACKAGE_LOGGER


class IdentityModel:
    """Predicts the value of a single column."""

    def __init__(self, column: str = "x") -> None:
        self.column = column

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        return X[self.column].to_numpy(dtype=float)


class AdditiveModel:
    """Linear model on numeric columns; categorical columns add a per-level offset."""

    def __init__(self, coefficients: Dict[str, float], offsets: Dict[Any, float] = None, offset_column: str = None) -> None:
        self.coefficients = coefficients
        self.offsets = offsets or {}
        self.offset_column = offset_column

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        prediction = np.zeros(len(X))
        for name, coefficient in self.coefficients.items():
            prediction += coefficient * X[name].to_numpy(dtype=float)
        if self.offset_column is not None:
            prediction += X[self.offset_column].astype(object).map(self.offsets).to_numpy(dtype=float)
        return prediction


@pytest.fixture(scope="session")
def regression_frame() -> pd.DataFrame:
    """Small mixed-type frame with a numeric target."""
    rng = np.random.RandomState(42)
    n_samples = 60

    df = pd.DataFrame({
        'x1': rng.uniform(0, 10, n_samples),
        'x2': rng.normal(5, 2, n_samples),
        'x3': rng.randint(0, 4, n_samples),
        'group': pd.Categorical(
            rng.choice(['a', 'b', 'c'], n_samples),
            categories=['a', 'b', 'c', 'unused']
        ),
    })
    df['y'] = 2.0 * df['x1'] - 0.5 * df['x2'] + df['x3'] + rng.normal(0, 0.1, n_samples)
    return df


@pytest.fixture(scope="session")
def numeric_X_y(regression_frame: pd.DataFrame):
    """Numeric features and target."""
    X = regression_frame[['x1', 'x2', 'x3']].copy()
    y = regression_frame['y'].copy()
    return X, y


@pytest.fixture(scope="session")
def linear_model(numeric_X_y):
    """Fitted scikit-learn linear regression (picklable across processes)."""
    from sklearn.linear_model import LinearRegression

    X, y = numeric_X_y
    return LinearRegression().fit(X, y)


@pytest.fixture(scope="session")
def classification_X_y():
    """Binary classification data with string labels."""
    rng = np.random.RandomState(0)
    n_samples = 200

    X = pd.DataFrame({
        'f1': rng.normal(0, 1, n_samples),
        'f2': rng.normal(0, 1, n_samples),
    })
    logits = 1.5 * X['f1'] - X['f2']
    y = np.where(rng.uniform(size=n_samples) < 1 / (1 + np.exp(-logits)), 'yes', 'no')
    return X, pd.Series(y, name='label')


@pytest.fixture(scope="session")
def logistic_model(classification_X_y):
    """Fitted scikit-learn logistic regression with classes ['no', 'yes']."""
    from sklearn.linear_model import LogisticRegression

    X, y = classification_X_y
    return LogisticRegression().fit(X, y)


@pytest.fixture
def additive_model() -> AdditiveModel:
    """Hand-written model over the regression frame."""
    return AdditiveModel(
        {'x1': 2.0, 'x2': -0.5},
        offsets={'a': 0.0, 'b': 1.0, 'c': 2.0},
        offset_column='group'
    )


@pytest.fixture
def x_frame() -> pd.DataFrame:
    """Single column x = 1..10."""
    return pd.DataFrame({'x': np.arange(1, 11)})


@pytest.fixture
def identity_model() -> IdentityModel:
    return IdentityModel('x')


@pytest.fixture(autouse=True)
def cleanup_environment():
    """Clean up environment variables after each test."""
    # Store original environment
    original_env = dict(os.environ)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def package_logs(caplog):
    """Capture package log records at DEBUG level."""
    caplog.set_level(logging.DEBUG, logger=PACKAGE_LOGGER)
    return caplog


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
