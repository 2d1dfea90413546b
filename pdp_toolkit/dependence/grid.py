# pdp_toolkit/dependence/grid.py
"""Grid construction for partial dependence.

A grid is a DataFrame with exactly one column per predictor and one row
per grid point. Axes are built per predictor (equally spaced, quantile
based or all observed levels) and combined as a Cartesian product with
the first predictor varying fastest. User supplied grids are checked and
passed through unchanged.

The convex hull filter drops grid points whose projection on the first
two predictors falls outside the region covered by the training data.
"""

import warnings
from typing import Any, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.spatial import ConvexHull

from ..config.dependence_config import (
    ExplicitGrid,
    GridSpecLike,
    QuantileGrid,
    ResolutionGrid,
    coerce_grid_spec
)
from ..utils.logger import get_logger
from ..utils.exceptions import (
    ConfigurationError,
    DataValidationError,
    handle_and_reraise,
    create_error_context
)

logger = get_logger(__name__)

# Default number of points for continuous predictors (pdp's grid.resolution cap)
DEFAULT_RESOLUTION = 51

# Boxplot whisker length used when trimming outliers
WHISKER_COEF = 1.5


class GridWarning(UserWarning):
    """Emitted when a grid axis collapses to a single value."""


def is_categorical(series: pd.Series, categorical: Optional[Iterable[str]] = None) -> bool:
    """Whether a predictor is treated as discrete (all levels, no resolution)."""
    if categorical is not None and series.name in set(categorical):
        return True
    return not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series)


def _observed_levels(series: pd.Series) -> List[Any]:
    observed = series.dropna()

    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(observed.unique())
        return [level for level in series.cat.categories if level in present]

    levels = list(pd.unique(observed))
    try:
        return sorted(levels)
    except TypeError:
        # Mixed, unorderable values keep their order of appearance
        return levels


def _trim_outliers(values: np.ndarray) -> np.ndarray:
    numeric = values.astype(float)
    q1, q3 = np.percentile(numeric, [25, 75])
    spread = WHISKER_COEF * (q3 - q1)
    keep = (numeric >= q1 - spread) & (numeric <= q3 + spread)
    return values[keep]


def _continuous_axis(series: pd.Series, spec: Any, trim_outliers: bool) -> np.ndarray:
    values = series.dropna().to_numpy()

    if values.size == 0:
        raise DataValidationError(
            f"Predictor '{series.name}' has no observed values",
            error_code="PREDICTOR_ALL_MISSING",
            context={"predictor": series.name}
        )

    if trim_outliers:
        n_before = values.size
        values = _trim_outliers(values)
        logger.debug(f"Trimmed {n_before - values.size} outliers from '{series.name}'")

    if isinstance(spec, QuantileGrid):
        axis = np.quantile(values.astype(float), spec.probs)
        if axis.size > 1 and np.all(axis == axis[0]):
            message = (
                f"All quantile grid points for '{series.name}' collapse to {axis[0]}; "
                "the predictor has too few distinct values for these probabilities"
            )
            logger.warning(message)
            warnings.warn(message, GridWarning, stacklevel=4)
        return axis

    resolution = spec.resolution
    if resolution is None:
        unique = np.unique(values)
        if unique.size <= DEFAULT_RESOLUTION:
            return unique
        resolution = DEFAULT_RESOLUTION

    lo, hi = values.min(), values.max()
    if lo == hi:
        logger.warning(f"Predictor '{series.name}' is constant; all {resolution} grid values equal {lo}")
    return np.linspace(lo, hi, resolution)


def _axis_column(axis: Sequence[Any], positions: np.ndarray, series: pd.Series, discrete: bool) -> pd.Series:
    if discrete:
        values = np.empty(len(axis), dtype=object)
        values[:] = list(axis)
        return pd.Series(values[positions]).astype(series.dtype)
    return pd.Series(np.asarray(axis)[positions])


def _expand_grid(axes: List[Sequence[Any]], predictors: List[str], data: pd.DataFrame, discrete: List[bool]) -> pd.DataFrame:
    sizes = [len(axis) for axis in axes]
    total = int(np.prod(sizes))

    columns = {}
    block = 1
    for name, axis, size, is_discrete in zip(predictors, axes, sizes, discrete):
        # first predictor varies fastest
        positions = np.tile(np.repeat(np.arange(size), block), total // (size * block))
        block *= size
        columns[name] = _axis_column(axis, positions, data[name], is_discrete)

    return pd.DataFrame(columns, columns=predictors)


def _explicit_grid(values: pd.DataFrame, predictors: List[str]) -> pd.DataFrame:
    if not values.columns.is_unique:
        raise ConfigurationError(
            "Explicit grid column names must be unique",
            error_code="GRID_COLUMNS_DUPLICATED",
            context={"columns": list(values.columns)}
        )

    missing = [p for p in predictors if p not in values.columns]
    extra = [c for c in values.columns if c not in predictors]
    if missing or extra:
        raise ConfigurationError(
            "Explicit grid must contain exactly the predictor columns",
            error_code="GRID_COLUMNS_MISMATCH",
            context={"missing": missing, "extra": extra, "predictors": predictors}
        )

    return values.loc[:, predictors].reset_index(drop=True)


def build_grid(
    data: pd.DataFrame,
    predictors: List[str],
    grid_spec: GridSpecLike = None,
    categorical: Optional[Iterable[str]] = None,
    trim_outliers: bool = False
) -> pd.DataFrame:
    """Build the grid of predictor values at which to evaluate the model.

    Args:
        data: Training data (already validated)
        predictors: Ordered predictor names
        grid_spec: ``ResolutionGrid``, ``QuantileGrid``, ``ExplicitGrid`` or a
            shorthand accepted by ``coerce_grid_spec``
        categorical: Extra column names to treat as discrete
        trim_outliers: Drop values outside the boxplot whiskers before
            building continuous axes

    Returns:
        Grid DataFrame with columns ``predictors`` and a RangeIndex

    Raises:
        ConfigurationError: For malformed specifications or explicit grids

    Example:
        >>> data = pd.DataFrame({"x": range(1, 11)})
        >>> build_grid(data, ["x"], ResolutionGrid(5))["x"].tolist()
        [1.0, 3.25, 5.5, 7.75, 10.0]
    """
    spec = coerce_grid_spec(grid_spec)

    if isinstance(spec, ExplicitGrid):
        grid = _explicit_grid(spec.values, predictors)
        logger.debug(f"Using explicit grid with {len(grid)} points")
        return grid

    categorical = list(categorical or [])
    axes = []
    discrete = []
    for name in predictors:
        series = data[name]
        if is_categorical(series, categorical):
            levels = _observed_levels(series)
            if not levels:
                raise DataValidationError(
                    f"Predictor '{name}' has no observed values",
                    error_code="PREDICTOR_ALL_MISSING",
                    context={"predictor": name}
                )
            axes.append(levels)
            discrete.append(True)
        else:
            axes.append(_continuous_axis(series, spec, trim_outliers))
            discrete.append(False)

    grid = _expand_grid(axes, predictors, data, discrete)
    logger.debug(
        f"Built {spec.kind} grid: {len(grid)} points "
        f"({' x '.join(str(len(a)) for a in axes)})"
    )
    return grid


def filter_convex_hull(
    grid: pd.DataFrame,
    data: pd.DataFrame,
    predictors: List[str],
    categorical: Optional[Iterable[str]] = None
) -> pd.DataFrame:
    """Keep grid points inside the convex hull of the first two predictors.

    Points on the hull boundary are kept. Surviving rows keep their
    relative order; the index is reset.

    Args:
        grid: Grid built by ``build_grid``
        data: Training data supplying the observed support
        predictors: Ordered predictor names (at least two)
        categorical: Extra column names treated as discrete

    Returns:
        Filtered grid (never larger than ``grid``)

    Raises:
        ConfigurationError: Fewer than two predictors, non-numeric first two
            predictors, or training support without a two-dimensional hull
    """
    if len(predictors) < 2:
        raise ConfigurationError(
            "The convex hull filter needs at least two predictors",
            error_code="CHULL_TOO_FEW_PREDICTORS",
            context={"predictors": predictors}
        )

    pair = list(predictors[:2])
    for name in pair:
        if is_categorical(data[name], categorical):
            raise ConfigurationError(
                f"The convex hull filter needs continuous predictors; '{name}' is categorical",
                error_code="CHULL_NON_NUMERIC",
                context={"predictor": name, "dtype": str(data[name].dtype)}
            )

    try:
        support = data[pair].dropna().to_numpy(dtype=float)
        points = grid[pair].to_numpy(dtype=float)
        hull = ConvexHull(support)
    except (RuntimeError, ValueError, TypeError) as e:
        handle_and_reraise(
            e, ConfigurationError,
            f"Cannot compute the convex hull of {pair}",
            error_code="CHULL_FAILED",
            context=create_error_context(predictors=pair, n_points=len(data))
        )

    normals, offsets = hull.equations[:, :-1], hull.equations[:, -1]
    tolerance = 1e-10 * max(1.0, float(np.abs(support).max()))
    inside = np.all(points @ normals.T + offsets <= tolerance, axis=1)

    filtered = grid.loc[inside].reset_index(drop=True)
    logger.info(f"Convex hull filter kept {len(filtered)}/{len(grid)} grid points")
    return filtered
