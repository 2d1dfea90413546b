# pdp_toolkit/dependence/base.py
"""Abstract base class for model explainers built on the dependence engine."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Union

import pandas as pd

from ..utils.exceptions import ConfigurationError, DataValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class BaseExplainer(ABC):
    """Common interface of explainers wrapping a fitted model.

    Subclasses implement ``explain``; the base class only checks the
    model and the feature names it is asked about.
    """

    required_methods: Sequence[str] = ("predict",)

    def __init__(
        self,
        model: Any,
        feature_names: Optional[List[str]] = None,
        **kwargs: Any
    ) -> None:
        """Initialize base explainer.

        Args:
            model: Fitted model to explain
            feature_names: Optional names of the model's input features
            **kwargs: Additional explainer-specific parameters
        """
        self.model = model
        self.feature_names = feature_names
        self.options = kwargs

        logger.debug(f"Initialized {self.__class__.__name__}")

    @abstractmethod
    def explain(
        self,
        X: pd.DataFrame,
        features: Union[str, List[str]],
        **kwargs: Any
    ) -> pd.DataFrame:
        """Explain the model's dependence on ``features`` over data ``X``."""
        pass

    def validate_model(self) -> None:
        """Validate that the model has one of the required methods."""
        if not any(hasattr(self.model, method) for method in self.required_methods):
            raise ConfigurationError(
                f"Model must have one of {list(self.required_methods)}",
                error_code="MODEL_INTERFACE_INVALID",
                context={"model": type(self.model).__name__}
            )

        logger.debug("Model validation passed")

    def validate_features(self, X: pd.DataFrame) -> None:
        """Validate input features against the known feature names."""
        if X.empty:
            raise DataValidationError("Input features cannot be empty", error_code="DATA_EMPTY")

        if self.feature_names and list(X.columns) != list(self.feature_names):
            raise DataValidationError(
                f"Feature mismatch: expected {len(self.feature_names)} columns {self.feature_names[:5]}..., "
                f"got {len(X.columns)}",
                error_code="FEATURE_MISMATCH",
                context={"expected": len(self.feature_names), "got": len(X.columns)}
            )

        logger.debug(f"Feature validation passed: {X.shape}")
