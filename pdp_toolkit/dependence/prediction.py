# pdp_toolkit/dependence/prediction.py
"""Prediction functions and the output shape contract.

A prediction function is any callable ``fn(model, data)``. Its return
value decides the shape of the result table:

* a scalar                               -> one ``yhat`` value per grid point
* a mapping / namedtuple / labelled Series -> one named column per entry
* a plain tuple                          -> columns ``yhat.1`` .. ``yhat.k``
* a 1-D array-like of length ``n``       -> one row per training row (ICE);
  this includes a Series indexed like the data

Missing values are the prediction function's business. The default
function averages with ``nanmean`` unless ``na_rm=False``; custom
functions decide for themselves and the evaluator never imputes.
"""

import numbers
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy.special import expit

from ..config.dependence_config import PredictionConfig, VALID_TASKS
from ..models.protocols import ProbabilisticPredictorProtocol
from ..utils.logger import get_logger
from ..utils.exceptions import ConfigurationError, ContractViolationError, validate_parameter

logger = get_logger(__name__)

PredictionFunction = Callable[[Any, pd.DataFrame], Any]

SCALAR = "scalar"
SUMMARY = "summary"
PER_ROW = "per_row"

INV_LINKS = {
    "identity": None,
    "exp": np.exp,
    "logistic": expit,
}


@dataclass(frozen=True, eq=False)
class PredictionOutput:
    """Validated output of one prediction function call."""

    kind: str
    names: Tuple[str, ...]
    values: np.ndarray

    @property
    def signature(self) -> Tuple[str, Tuple[str, ...], int]:
        return self.kind, self.names, len(self.values)


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if isinstance(value, np.ndarray) and value.ndim == 0:
        value = value.item()
    if not isinstance(value, (numbers.Number, np.number)):
        raise ContractViolationError(
            f"Prediction function returned a non-numeric {what}: {value!r}",
            error_code="PREDICTION_NOT_NUMERIC",
            context={"type": type(value).__name__}
        )
    try:
        return float(value)
    except TypeError as e:
        # complex numbers
        raise ContractViolationError(
            f"Prediction function returned a non-real {what}: {value!r}",
            error_code="PREDICTION_NOT_NUMERIC",
            context={"type": type(value).__name__}
        ) from e


def _is_scalar(raw: Any) -> bool:
    if isinstance(raw, np.ndarray):
        return raw.ndim == 0
    return np.isscalar(raw) and not isinstance(raw, (str, bytes))


def _summary(names: Tuple[Any, ...], values: Tuple[Any, ...]) -> PredictionOutput:
    if not names:
        raise ContractViolationError(
            "Prediction function returned an empty summary",
            error_code="PREDICTION_EMPTY"
        )
    names = tuple(str(name) for name in names)
    if len(set(names)) != len(names):
        raise ContractViolationError(
            f"Prediction summary names must be unique, got {list(names)}",
            error_code="PREDICTION_NAMES_DUPLICATED",
            context={"names": list(names)}
        )
    floats = np.array([_as_float(v, "summary value") for v in values], dtype=float)
    return PredictionOutput(SUMMARY, names, floats)


def _is_row_aligned(series: pd.Series, index: Optional[pd.Index]) -> bool:
    if index is not None and series.index.equals(index):
        return True
    # an unlabelled series is positional, like an array
    labels = series.index
    return isinstance(labels, pd.RangeIndex) and labels.start == 0 and labels.step == 1


def validate_prediction(raw: Any, n_rows: int, index: Optional[pd.Index] = None) -> PredictionOutput:
    """Check a prediction function's return value against the shape contract.

    A Series indexed like the data (or not labelled at all) holds one
    value per row; any other Series is a summary named by its labels,
    e.g. the result of ``Series.quantile([0.1, 0.9])``.

    Args:
        raw: Value returned by the prediction function
        n_rows: Number of rows of the data passed to it
        index: Index of the data passed to it

    Returns:
        ``PredictionOutput`` describing the value

    Raises:
        ContractViolationError: For any other shape

    Example:
        >>> validate_prediction(3.5, n_rows=10).kind
        'scalar'
        >>> validate_prediction({"mean": 1.0, "sd": 0.2}, n_rows=10).names
        ('mean', 'sd')
    """
    if raw is None:
        raise ContractViolationError(
            "Prediction function returned None",
            error_code="PREDICTION_NONE"
        )

    if _is_scalar(raw):
        return PredictionOutput(SCALAR, ("yhat",), np.array([_as_float(raw, "value")]))

    if isinstance(raw, Mapping):
        return _summary(tuple(raw.keys()), tuple(raw.values()))

    if isinstance(raw, tuple) and hasattr(raw, "_fields"):
        return _summary(tuple(raw._fields), tuple(raw))

    if isinstance(raw, tuple):
        return _summary(tuple(f"yhat.{i}" for i in range(1, len(raw) + 1)), raw)

    if isinstance(raw, pd.Series) and not _is_row_aligned(raw, index):
        return _summary(tuple(raw.index), tuple(raw.to_numpy()))

    if isinstance(raw, pd.DataFrame):
        raise ContractViolationError(
            f"Prediction function returned a table of shape {raw.shape}; "
            "return a scalar, a named summary or one value per row",
            error_code="PREDICTION_SHAPE_INVALID",
            context={"shape": raw.shape, "n_rows": n_rows}
        )

    try:
        array = np.asarray(raw)
    except (TypeError, ValueError) as e:
        raise ContractViolationError(
            f"Prediction function returned an unsupported value of type {type(raw).__name__}",
            error_code="PREDICTION_TYPE_INVALID",
            context={"type": type(raw).__name__}
        ) from e

    if array.ndim != 1:
        raise ContractViolationError(
            f"Prediction function returned an array of shape {array.shape}; expected one dimension",
            error_code="PREDICTION_SHAPE_INVALID",
            context={"shape": array.shape, "n_rows": n_rows}
        )

    if array.dtype.kind not in "biuf":
        if array.dtype.kind == "O":
            array = np.array([_as_float(v, "element") for v in array], dtype=float)
        else:
            raise ContractViolationError(
                f"Prediction function returned non-numeric values of dtype {array.dtype}",
                error_code="PREDICTION_NOT_NUMERIC",
                context={"dtype": str(array.dtype)}
            )

    if len(array) == n_rows:
        return PredictionOutput(PER_ROW, ("yhat",), array.astype(float))

    if len(array) == 1:
        return PredictionOutput(SCALAR, ("yhat",), array.astype(float))

    raise ContractViolationError(
        f"Prediction function returned {len(array)} values for {n_rows} rows; "
        f"expected a scalar, a named summary or exactly {n_rows} values",
        error_code="PREDICTION_LENGTH_INVALID",
        context={"length": len(array), "n_rows": n_rows}
    )


class DefaultPrediction:
    """Default prediction function: average model output over the data.

    Regression models are averaged through ``predict``; classifiers
    through ``predict_proba`` for one target class. Instances are plain
    picklable objects so they can be shipped to worker processes.

    Args:
        task: 'auto', 'regression' or 'classification'
        which_class: Target class; a label from ``model.classes_`` or a
            column position in ``predict_proba`` output
        prob: Average probabilities (True) or centered logits (False)
        inv_link: Inverse link applied to regression predictions before
            averaging ('identity', 'exp', 'logistic' or a callable)
        na_rm: Ignore NaN predictions when averaging
        ice: Return the per-row predictions instead of their mean

    Example:
        >>> fn = DefaultPrediction(task="classification", which_class="yes")
        >>> fn(model, X)
        0.42
    """

    def __init__(
        self,
        task: str = "auto",
        which_class: Union[int, str] = 1,
        prob: bool = True,
        inv_link: Union[str, Callable[[np.ndarray], np.ndarray], None] = None,
        na_rm: bool = True,
        ice: bool = False
    ) -> None:
        validate_parameter("task", task, valid_values=list(VALID_TASKS))
        if isinstance(inv_link, str):
            validate_parameter("inv_link", inv_link, valid_values=list(INV_LINKS))
            inv_link = INV_LINKS[inv_link]
        elif inv_link is not None and not callable(inv_link):
            raise ConfigurationError(
                "inv_link must be a callable or one of " + ", ".join(INV_LINKS),
                error_code="PREDICTION_INV_LINK_INVALID",
                context={"inv_link": repr(inv_link)}
            )

        self.task = task
        self.which_class = which_class
        self.prob = prob
        self.inv_link = inv_link
        self.na_rm = na_rm
        self.ice = ice

    @classmethod
    def from_config(cls, config: PredictionConfig) -> "DefaultPrediction":
        return cls(
            task=config.task,
            which_class=config.which_class,
            prob=config.prob,
            inv_link=config.inv_link,
            na_rm=config.na_rm,
            ice=config.ice
        )

    def resolve_task(self, model: Any) -> str:
        if self.task != "auto":
            return self.task
        if isinstance(model, ProbabilisticPredictorProtocol):
            return "classification"
        return "regression"

    def _class_position(self, model: Any, n_classes: int) -> int:
        classes = list(getattr(model, "classes_", []))
        if self.which_class in classes:
            return classes.index(self.which_class)
        if isinstance(self.which_class, (int, np.integer)) and 0 <= self.which_class < n_classes:
            return int(self.which_class)
        raise ConfigurationError(
            f"Unknown target class {self.which_class!r}",
            error_code="PREDICTION_CLASS_NOT_FOUND",
            context={"which_class": self.which_class, "classes": classes, "n_classes": n_classes}
        )

    def _classification(self, model: Any, data: pd.DataFrame) -> np.ndarray:
        proba = np.asarray(model.predict_proba(data), dtype=float)
        if proba.ndim != 2:
            raise ContractViolationError(
                f"predict_proba returned an array of shape {proba.shape}; expected (n_samples, n_classes)",
                error_code="PREDICT_PROBA_SHAPE_INVALID",
                context={"shape": proba.shape}
            )

        position = self._class_position(model, proba.shape[1])
        if self.prob:
            return proba[:, position]

        # centered logit; zero probabilities are floored at machine epsilon
        eps = np.finfo(float).eps
        log_proba = np.log(np.where(proba > 0, proba, eps))
        return log_proba[:, position] - log_proba.mean(axis=1)

    def _regression(self, model: Any, data: pd.DataFrame) -> np.ndarray:
        predictions = np.asarray(model.predict(data), dtype=float)
        if predictions.ndim == 2 and predictions.shape[1] == 1:
            predictions = predictions.ravel()
        if self.inv_link is not None:
            predictions = np.asarray(self.inv_link(predictions), dtype=float)
        return predictions

    def __call__(self, model: Any, data: pd.DataFrame) -> Union[float, np.ndarray]:
        if self.resolve_task(model) == "classification":
            predictions = self._classification(model, data)
        else:
            predictions = self._regression(model, data)

        if self.ice:
            return predictions
        if self.na_rm:
            return float(np.nanmean(predictions))
        return float(np.mean(predictions))

    def __repr__(self) -> str:
        return (
            f"DefaultPrediction(task={self.task!r}, which_class={self.which_class!r}, "
            f"prob={self.prob}, na_rm={self.na_rm}, ice={self.ice})"
        )


def resolve_prediction_fn(
    prediction_fn: Optional[PredictionFunction],
    config: Optional[PredictionConfig] = None
) -> PredictionFunction:
    """Return the user's prediction function, or build the default one.

    Raises:
        ConfigurationError: If ``prediction_fn`` is not callable
    """
    if prediction_fn is None:
        return DefaultPrediction.from_config(config or PredictionConfig())

    if not callable(prediction_fn):
        raise ConfigurationError(
            f"prediction_fn must be callable, got {type(prediction_fn).__name__}",
            error_code="PREDICTION_FN_INVALID"
        )

    return prediction_fn
