# pdp_toolkit/dependence/data.py
"""Training data checks and the exemplar row used by approximate mode."""

from typing import List, Sequence, Union

import pandas as pd

from ..utils.logger import get_logger
from ..utils.exceptions import ConfigurationError, DataValidationError

logger = get_logger(__name__)


def validate_training_data(
    data: pd.DataFrame,
    predictors: Union[str, Sequence[str]]
) -> List[str]:
    """Validate training data and the predictor set.

    Args:
        data: Training data (read only)
        predictors: One column name or an ordered sequence of names

    Returns:
        Predictor set as a list of column names

    Raises:
        DataValidationError: If data is not a non-empty DataFrame
        ConfigurationError: If the predictor set is empty, duplicated or unknown
    """
    if not isinstance(data, pd.DataFrame):
        raise DataValidationError(
            f"Training data must be a pandas DataFrame, got {type(data).__name__}",
            error_code="DATA_NOT_TABULAR"
        )

    if len(data) == 0:
        raise DataValidationError(
            "Training data cannot be empty",
            error_code="DATA_EMPTY",
            context={"shape": data.shape}
        )

    if isinstance(predictors, str):
        predictors = [predictors]
    predictors = list(predictors)

    if not predictors:
        raise ConfigurationError(
            "At least one predictor is required",
            error_code="PREDICTORS_EMPTY"
        )

    if len(set(predictors)) != len(predictors):
        raise ConfigurationError(
            f"Predictors must be unique, got {predictors}",
            error_code="PREDICTORS_DUPLICATED",
            context={"predictors": predictors}
        )

    missing = [p for p in predictors if p not in data.columns]
    if missing:
        raise ConfigurationError(
            f"Predictors not found in training data: {missing}",
            error_code="PREDICTOR_NOT_FOUND",
            context={"missing": missing, "available": list(data.columns)[:20]}
        )

    if not data.columns.is_unique:
        raise DataValidationError(
            "Training data column names must be unique",
            error_code="DATA_DUPLICATE_COLUMNS",
            context={"duplicated": list(data.columns[data.columns.duplicated()])}
        )

    logger.debug(f"Training data validated: {data.shape}, predictors={predictors}")
    return predictors


def _is_continuous(series: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)


def exemplar(data: pd.DataFrame) -> pd.DataFrame:
    """Build a single representative row from ``data``.

    Numeric columns take their median, all other columns their most
    frequent value (categorical dtypes are kept). Replacing the training
    data by this row gives a fast, approximate partial dependence that
    holds the other predictors fixed instead of averaging over them.

    Args:
        data: Training data

    Returns:
        One-row DataFrame with the same columns as ``data``
    """
    columns = {}
    for name in data.columns:
        series = data[name]
        if _is_continuous(series):
            columns[name] = pd.Series([series.median()])
        else:
            mode = series.mode(dropna=True)
            if mode.empty:
                columns[name] = series.iloc[:1].reset_index(drop=True)
            else:
                columns[name] = mode.iloc[:1].reset_index(drop=True)

    return pd.DataFrame(columns, columns=data.columns)
