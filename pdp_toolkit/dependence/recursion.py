# pdp_toolkit/dependence/recursion.py
"""Partial dependence by weighted tree traversal.

scikit-learn tree models (decision trees, random forests, gradient
boosting) can average over the training distribution without predicting
row by row: each tree is walked once per grid point and the leaves are
weighted by their training sample counts. The result is the partial
dependence with respect to the data the model was fit on.

For gradient boosting the constant ``init`` prediction is not included,
so curves are shifted by a constant relative to the brute force method.
"""

from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from .grid import is_categorical
from .prediction import SCALAR, PredictionOutput
from ..models.protocols import RecursivePartialDependenceProtocol
from ..utils.logger import get_logger
from ..utils.exceptions import (
    ConfigurationError,
    EvaluationFailure,
    handle_and_reraise,
    create_error_context
)

logger = get_logger(__name__)


def supports_recursion(model) -> bool:
    return isinstance(model, RecursivePartialDependenceProtocol)


def _target_features(model, data: pd.DataFrame, predictors: List[str]) -> np.ndarray:
    feature_names = getattr(model, "feature_names_in_", None)
    columns = list(feature_names) if feature_names is not None else list(data.columns)

    missing = [p for p in predictors if p not in columns]
    if missing:
        raise ConfigurationError(
            f"Predictors {missing} are not features of the model",
            error_code="RECURSION_FEATURE_NOT_FOUND",
            context={"missing": missing}
        )

    return np.asarray([columns.index(p) for p in predictors], dtype=np.intp)


def check_recursion_supported(
    model,
    data: pd.DataFrame,
    predictors: List[str],
    categorical: Optional[Iterable[str]] = None
) -> None:
    """Raise ``ConfigurationError`` unless the tree traversal can be used."""
    if not supports_recursion(model):
        raise ConfigurationError(
            f"{type(model).__name__} does not support method='recursion'; "
            "use a scikit-learn tree ensemble or method='brute'",
            error_code="RECURSION_NOT_SUPPORTED",
            context={"model": type(model).__name__}
        )

    for name in predictors:
        if is_categorical(data[name], categorical):
            raise ConfigurationError(
                f"method='recursion' needs numeric predictors; '{name}' is categorical",
                error_code="RECURSION_NON_NUMERIC",
                context={"predictor": name, "dtype": str(data[name].dtype)}
            )


def recursion_outputs(
    model,
    grid: pd.DataFrame,
    data: pd.DataFrame,
    predictors: List[str]
) -> List[PredictionOutput]:
    """Averaged predictions for every grid point, one scalar output each.

    Args:
        model: Fitted scikit-learn tree model
        grid: Grid DataFrame
        data: Training data (used for column positions when the model
            carries no feature names)
        predictors: Ordered predictor names

    Returns:
        Scalar ``PredictionOutput`` per grid point, in grid order
    """
    target_features = _target_features(model, data, predictors)
    points = np.ascontiguousarray(grid[predictors].to_numpy(dtype=np.float64))

    try:
        averaged = np.asarray(model._compute_partial_dependence_recursion(points, target_features))
    except Exception as e:
        handle_and_reraise(
            e, EvaluationFailure,
            f"Tree traversal failed for {type(model).__name__}",
            error_code="RECURSION_FAILED",
            context=create_error_context(predictors=predictors, n_grid=len(grid))
        )

    # multi-output models return (n_outputs, n_points); only one output is supported
    if averaged.ndim == 2 and averaged.shape[0] == 1:
        averaged = averaged.ravel()
    if averaged.ndim != 1 or len(averaged) != len(grid):
        raise ConfigurationError(
            f"method='recursion' supports single-output models only, got predictions of shape {averaged.shape}",
            error_code="RECURSION_MULTI_OUTPUT",
            context={"shape": averaged.shape, "n_grid": len(grid)}
        )

    logger.debug(f"Tree traversal evaluated {len(grid)} grid points")
    return [PredictionOutput(SCALAR, ("yhat",), np.array([value], dtype=float)) for value in averaged]
