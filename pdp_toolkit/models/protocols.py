"""Protocol definitions for models consumed by pdp_toolkit.

The dependence engine never fits or mutates a model. The default
prediction function only needs one of the capabilities below; custom
prediction functions may accept any object at all.
"""

from typing import Any, Protocol, runtime_checkable
import pandas as pd
import numpy as np


@runtime_checkable
class PredictorProtocol(Protocol):
    """Anything exposing ``predict(data) -> predictions``.

    The @runtime_checkable decorator allows isinstance() checks
    to validate protocol compliance at runtime.
    """

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Generate one prediction per row of ``X``.

        Args:
            X: Input features

        Returns:
            Predictions as a 1-D numpy array
        """
        ...


@runtime_checkable
class ProbabilisticPredictorProtocol(Protocol):
    """Classifier exposing class probabilities and the class labels."""

    classes_: Any

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """Generate class probabilities.

        Args:
            X: Input features

        Returns:
            Prediction probabilities as numpy array
            Shape: (n_samples, n_classes)
        """
        ...


@runtime_checkable
class RecursivePartialDependenceProtocol(Protocol):
    """Tree ensembles supporting weighted tree traversal (scikit-learn)."""

    def _compute_partial_dependence_recursion(self, grid: np.ndarray, target_features: np.ndarray) -> np.ndarray:
        ...
