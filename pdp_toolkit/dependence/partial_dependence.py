# pdp_toolkit/dependence/partial_dependence.py
"""Partial dependence and individual conditional expectation.

``compute_dependence`` estimates how a fitted model's predictions depend
on a subset of its predictors. For every point of a grid over those
predictors it overwrites them in a copy of the training data, calls a
prediction function and collects the outputs into one table:

* averaged predictions give the partial dependence (one row per point)
* per-row predictions give ICE curves (one row per point and training row)
* named summaries give one column per summary statistic

Example:
    >>> from pdp_toolkit import compute_dependence, ExecutionConfig
    >>> pd_table = compute_dependence(model, X_train, ["age", "income"], grid_spec=10)
    >>> ice_table = compute_dependence(
    ...     model, X_train, "age",
    ...     prediction={"ice": True},
    ...     execution=ExecutionConfig.parallel(n_workers=4)
    ... )
"""

from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .assembler import assemble_results
from .base import BaseExplainer
from .data import exemplar, validate_training_data
from .evaluator import DependenceEvaluator, evaluate_point
from .execution import ExecutionLike, resolve_progress, resolve_strategy
from .grid import build_grid, filter_convex_hull
from .prediction import DefaultPrediction, PredictionFunction, resolve_prediction_fn
from .recursion import check_recursion_supported, recursion_outputs
from ..config.dependence_config import (
    DependenceConfig,
    GridSpecLike,
    PredictionConfig,
    VALID_METHODS
)
from ..utils.logger import get_logger
from ..utils.timer import timer, timed_operation
from ..utils.exceptions import ConfigurationError, validate_parameter

logger = get_logger(__name__)


def _resolve_config(config: Union[DependenceConfig, Mapping[str, Any], None]) -> DependenceConfig:
    if config is None:
        return DependenceConfig()
    if isinstance(config, Mapping):
        return DependenceConfig.from_dict(config)
    if not isinstance(config, DependenceConfig):
        raise ConfigurationError(
            f"config must be a DependenceConfig or a mapping, got {type(config).__name__}",
            error_code="CONFIG_INVALID"
        )
    return config


def _resolve_prediction(prediction: Union[PredictionConfig, Mapping[str, Any], None], default: PredictionConfig) -> PredictionConfig:
    if prediction is None:
        return default
    if isinstance(prediction, Mapping):
        return PredictionConfig.from_dict(prediction)
    if not isinstance(prediction, PredictionConfig):
        raise ConfigurationError(
            f"prediction must be a PredictionConfig or a mapping, got {type(prediction).__name__}",
            error_code="CONFIG_INVALID"
        )
    return prediction


def _check_recursion(
    model: Any,
    data: pd.DataFrame,
    predictors: List[str],
    prediction_fn: Optional[PredictionFunction],
    prediction: PredictionConfig,
    approximate: bool,
    categorical: List[str]
) -> None:
    reasons = []
    if prediction_fn is not None:
        reasons.append("a custom prediction function")
    if prediction.ice:
        reasons.append("ICE curves")
    if prediction.inv_link is not None:
        reasons.append("an inverse link")
    if approximate:
        reasons.append("approximate=True")
    if DefaultPrediction.from_config(prediction).resolve_task(model) == "classification":
        reasons.append("classification probabilities")

    if reasons:
        raise ConfigurationError(
            f"method='recursion' cannot be combined with {', '.join(reasons)}",
            error_code="CONFIG_COMBINATION_INVALID",
            context={"method": "recursion", "conflicts": reasons}
        )

    check_recursion_supported(model, data, predictors, categorical)


@timer(name="dependence_computation")
def compute_dependence(
    model: Any,
    training_data: pd.DataFrame,
    predictors: Union[str, Sequence[str]],
    grid_spec: GridSpecLike = None,
    prediction_fn: Optional[PredictionFunction] = None,
    chull: Optional[bool] = None,
    execution: ExecutionLike = None,
    *,
    prediction: Union[PredictionConfig, Mapping[str, Any], None] = None,
    categorical: Optional[Iterable[str]] = None,
    trim_outliers: Optional[bool] = None,
    center: Optional[bool] = None,
    approximate: Optional[bool] = None,
    method: Optional[str] = None,
    config: Union[DependenceConfig, Mapping[str, Any], None] = None
) -> pd.DataFrame:
    """Compute partial dependence or ICE estimates for a fitted model.

    Options left as ``None`` are taken from ``config`` (a
    ``DependenceConfig`` or its dictionary form), which in turn defaults
    to a resolution grid, sequential execution and the default
    prediction function.

    Args:
        model: Fitted model; opaque unless the default prediction function
            or ``method='recursion'`` is used
        training_data: Training data; never modified
        predictors: Predictor name or ordered names (the first varies
            fastest in generated grids)
        grid_spec: Grid specification (``ResolutionGrid``, ``QuantileGrid``,
            ``ExplicitGrid``, an int resolution, a DataFrame or a mapping)
        prediction_fn: Callable ``fn(model, data)``; defaults to averaging
            ``predict`` / ``predict_proba`` over the data
        chull: Keep only grid points inside the convex hull of the first
            two predictors' training values (default False)
        execution: ``ExecutionConfig``, ``ExecutionStrategy`` or mapping
            (default sequential)
        prediction: Settings of the default prediction function
            (``PredictionConfig`` or mapping), e.g. ``{"ice": True}``
        categorical: Extra predictors to treat as discrete
        trim_outliers: Drop outliers before building continuous axes
        center: Center ICE curves at the first grid point (c-ICE)
        approximate: Evaluate on a single exemplar row instead of the full data
        method: 'brute' (default) or 'recursion' for scikit-learn tree models
        config: Defaults for all of the above

    Returns:
        Result table with the predictor columns first, then ``yhat`` (and
        ``yhat.id`` for ICE) or one column per summary name

    Raises:
        ConfigurationError: Invalid options, predictors or grid
        DataValidationError: Unusable training data
        ContractViolationError: Prediction function output of unsupported
            or inconsistent shape
        EvaluationFailure: Prediction function raised at some grid point
        ResourceError: Worker pool failure in parallel mode
    """
    cfg = _resolve_config(config)
    grid_spec = cfg.grid if grid_spec is None else grid_spec
    chull = cfg.chull if chull is None else chull
    execution = cfg.execution if execution is None else execution
    prediction = _resolve_prediction(prediction, cfg.prediction)
    categorical = cfg.categorical if categorical is None else list(categorical)
    trim_outliers = cfg.trim_outliers if trim_outliers is None else trim_outliers
    center = cfg.center if center is None else center
    approximate = cfg.approximate if approximate is None else approximate
    method = cfg.method if method is None else method

    validate_parameter("method", method, valid_values=list(VALID_METHODS))
    predictors = validate_training_data(training_data, predictors)

    if center and prediction_fn is None and not prediction.ice:
        raise ConfigurationError(
            "center=True needs individual curves; pass prediction={'ice': True}",
            error_code="CENTER_REQUIRES_ICE"
        )

    if method == "recursion":
        _check_recursion(model, training_data, predictors, prediction_fn, prediction, approximate, categorical)

    logger.info(f"🔍 Computing dependence on {predictors} ({len(training_data):,} rows, method={method})")

    with timed_operation("grid_construction"):
        grid = build_grid(training_data, predictors, grid_spec, categorical, trim_outliers)
        if chull:
            grid = filter_convex_hull(grid, training_data, predictors, categorical)

    if len(grid) == 0:
        logger.warning("No grid points left to evaluate; returning an empty table")

    with timed_operation("grid_evaluation"):
        if method == "recursion":
            outputs = recursion_outputs(model, grid, training_data, predictors)
        else:
            data = exemplar(training_data) if approximate else training_data
            if approximate:
                logger.info("Approximate mode: evaluating on a single exemplar row")

            fn = resolve_prediction_fn(prediction_fn, prediction)
            evaluator = DependenceEvaluator(model, data, predictors, fn)
            strategy = resolve_strategy(execution)
            tasks = [(evaluator, index, point) for index, point in enumerate(grid.to_dict(orient="records"))]

            logger.debug(f"Evaluating {len(tasks)} grid points with {strategy!r}")
            outputs = strategy.run(evaluate_point, tasks, progress=resolve_progress(execution))

    # a custom prediction function only announces per-row output by asking for centering
    per_row = prediction.ice if prediction_fn is None else center
    result = assemble_results(grid, outputs, predictors, center=center, per_row=per_row)

    logger.info(f"✅ Dependence computed: {len(grid)} grid points, {len(result):,} rows ({result.attrs['kind']})")
    return result


class PartialDependenceExplainer(BaseExplainer):
    """Explainer facade over ``compute_dependence``.

    Example:
        >>> explainer = PartialDependenceExplainer(model, DependenceConfig(grid=ResolutionGrid(20)))
        >>> curve = explainer.partial_dependence(X_train, "age")
        >>> curves = explainer.ice(X_train, "age", center=True)
    """

    required_methods = ("predict", "predict_proba")

    def __init__(
        self,
        model: Any,
        config: Union[DependenceConfig, Mapping[str, Any], None] = None,
        feature_names: Optional[List[str]] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(model, feature_names=feature_names, **kwargs)
        self.config = _resolve_config(config)

        logger.info(f"Initialized PartialDependenceExplainer for {type(model).__name__}")

    def explain(
        self,
        X: pd.DataFrame,
        features: Union[str, List[str]],
        **kwargs: Any
    ) -> pd.DataFrame:
        """Run ``compute_dependence`` with this explainer's configuration.

        Keyword arguments override the configuration for this call.
        """
        if kwargs.get("prediction_fn") is None:
            self.validate_model()
        self.validate_features(X)
        kwargs.setdefault("config", self.config)
        return compute_dependence(self.model, X, features, **kwargs)

    def partial_dependence(
        self,
        X: pd.DataFrame,
        features: Union[str, List[str]],
        **kwargs: Any
    ) -> pd.DataFrame:
        """Averaged partial dependence on ``features``."""
        kwargs.setdefault("prediction", replace(self.config.prediction, ice=False))
        return self.explain(X, features, **kwargs)

    def ice(
        self,
        X: pd.DataFrame,
        feature: Union[str, List[str]],
        center: bool = False,
        **kwargs: Any
    ) -> pd.DataFrame:
        """Individual conditional expectation curves, optionally centered."""
        kwargs.setdefault("prediction", replace(self.config.prediction, ice=True))
        return self.explain(X, feature, center=center, **kwargs)
