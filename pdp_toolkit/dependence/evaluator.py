# pdp_toolkit/dependence/evaluator.py
"""Evaluation of a prediction function at a single grid point."""

from typing import Any, Dict, List, Mapping

import pandas as pd

from .prediction import PredictionFunction, PredictionOutput, validate_prediction
from ..utils.logger import get_logger
from ..utils.exceptions import EvaluationFailure, handle_and_reraise, create_error_context

logger = get_logger(__name__)


class DependenceEvaluator:
    """Overwrite the predictors with one grid point and call the prediction function.

    The training data itself is never modified; every evaluation works on
    a fresh copy. Instances hold only the model, the data and the
    prediction function so they pickle whenever those do.

    Args:
        model: Fitted model passed through to ``prediction_fn``
        data: Training data
        predictors: Ordered predictor names
        prediction_fn: Callable ``fn(model, data)``
    """

    def __init__(
        self,
        model: Any,
        data: pd.DataFrame,
        predictors: List[str],
        prediction_fn: PredictionFunction
    ) -> None:
        self.model = model
        self.data = data
        self.predictors = list(predictors)
        self.prediction_fn = prediction_fn

    def modified_data(self, point: Mapping[str, Any]) -> pd.DataFrame:
        """Copy of the training data with the predictors set to ``point``."""
        modified = self.data.copy()
        n_rows = len(modified)

        for name in self.predictors:
            value = point[name]
            dtype = modified[name].dtype
            if isinstance(dtype, pd.CategoricalDtype):
                modified[name] = pd.Categorical([value] * n_rows, dtype=dtype)
            else:
                modified[name] = value

        return modified

    def evaluate(self, index: int, point: Mapping[str, Any]) -> PredictionOutput:
        """Evaluate the prediction function at grid point ``index``.

        Raises:
            EvaluationFailure: If the prediction function raises
            ContractViolationError: If it returns an unsupported shape
        """
        modified = self.modified_data(point)

        try:
            raw = self.prediction_fn(self.model, modified)
        except Exception as e:
            handle_and_reraise(
                e, EvaluationFailure,
                f"Prediction function failed at grid point {index}",
                error_code="EVALUATION_FAILED",
                context=create_error_context(grid_index=index, point=dict(point))
            )

        output = validate_prediction(raw, len(modified), index=modified.index)
        logger.debug(f"Grid point {index} evaluated: {output.kind} output, {len(output.values)} value(s)")
        return output


def evaluate_point(evaluator: DependenceEvaluator, index: int, point: Dict[str, Any]) -> PredictionOutput:
    """Task entry point shipped to worker pools."""
    return evaluator.evaluate(index, point)
