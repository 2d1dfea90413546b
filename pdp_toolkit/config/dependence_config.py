# pdp_toolkit/config/dependence_config.py
"""Type-safe configuration for partial dependence computations.

Grid specifications are a small tagged union (``ResolutionGrid``,
``QuantileGrid``, ``ExplicitGrid``); execution and prediction settings are
validated records. Invalid values and invalid combinations are rejected
when the objects are constructed, not when they are used.
"""

import math
import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ..utils.exceptions import ConfigurationError, validate_parameter
from ..utils.logger import get_logger

logger = get_logger(__name__)

VALID_MODES = ("sequential", "parallel")
VALID_BACKENDS = ("processes", "threads", "loky")
VALID_TASKS = ("auto", "regression", "classification")
VALID_INV_LINKS = ("identity", "exp", "logistic")
VALID_METHODS = ("brute", "recursion")

# pdp uses deciles when quantile grids are requested without probabilities
DEFAULT_QUANTILE_PROBS = tuple(i / 10 for i in range(1, 10))


class _EnvOverridable:
    """Mixin adding environment variable overrides to flat dataclass fields."""

    def update_from_env(self, prefix: str = "") -> None:
        """Update scalar fields from environment variables.

        Args:
            prefix: Environment variable prefix (e.g., "PDP_EXECUTION_")
        """
        for config_field in fields(self):
            env_name = f"{prefix}{config_field.name.upper()}"
            if env_name not in os.environ:
                continue

            env_value = os.environ[env_name]
            field_type = config_field.type

            try:
                if field_type == bool:
                    converted_value = env_value.lower() in ("true", "1", "yes", "on")
                elif field_type == int or field_type == Optional[int]:
                    converted_value = int(env_value)
                elif field_type == str:
                    converted_value = env_value
                else:
                    logger.debug(f"Skipping non-scalar field {config_field.name} for {env_name}")
                    continue
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to parse environment variable {env_name}: {e}")
                continue

            setattr(self, config_field.name, converted_value)
            logger.info(f"Updated {config_field.name} from environment: {converted_value}")

        # Re-run validation with the new values
        self.__post_init__()


def _section_from_dict(cls, config_dict: Mapping[str, Any]):
    """Build a flat configuration section, rejecting unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(config_dict) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown {cls.__name__} keys: {sorted(unknown)}",
            error_code="CONFIG_UNKNOWN_KEYS",
            context={"section": cls.__name__, "unknown": sorted(unknown), "known": sorted(known)}
        )
    return cls(**config_dict)


@dataclass(frozen=True)
class GridSpec:
    """Base class of the grid specification variants."""

    kind: ClassVar[str] = "base"

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ResolutionGrid(GridSpec):
    """Equally spaced grid with ``resolution`` points per continuous predictor.

    ``resolution=None`` keeps the pdp default: every distinct value when a
    predictor has at most 51 of them, otherwise 51 evenly spaced values.
    """

    kind: ClassVar[str] = "resolution"

    resolution: Optional[int] = None

    def __post_init__(self) -> None:
        if self.resolution is not None:
            if isinstance(self.resolution, bool) or not isinstance(self.resolution, (int, np.integer)):
                raise ConfigurationError(
                    f"Grid resolution must be an integer, got {self.resolution!r}",
                    error_code="GRID_RESOLUTION_INVALID",
                    context={"resolution": self.resolution}
                )
            validate_parameter("resolution", int(self.resolution), min_value=2)
            object.__setattr__(self, "resolution", int(self.resolution))

    def to_dict(self) -> Dict[str, Any]:
        return {"resolution": self.resolution}


@dataclass(frozen=True)
class QuantileGrid(GridSpec):
    """Grid made of empirical quantiles at the given probabilities."""

    kind: ClassVar[str] = "quantiles"

    probs: Tuple[float, ...] = DEFAULT_QUANTILE_PROBS

    def __post_init__(self) -> None:
        try:
            probs = tuple(float(p) for p in self.probs)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                "Quantile probabilities must be a sequence of numbers",
                error_code="GRID_PROBS_INVALID",
                context={"probs": str(self.probs)}
            ) from e

        if not probs:
            raise ConfigurationError(
                "At least one quantile probability is required",
                error_code="GRID_PROBS_EMPTY"
            )

        for p in probs:
            if math.isnan(p) or not 0.0 <= p <= 1.0:
                raise ConfigurationError(
                    f"Quantile probabilities must lie in [0, 1], got {p}",
                    error_code="GRID_PROBS_OUT_OF_RANGE",
                    context={"probs": probs}
                )

        object.__setattr__(self, "probs", probs)

    def to_dict(self) -> Dict[str, Any]:
        return {"quantile_probs": list(self.probs)}


@dataclass(frozen=True, eq=False)
class ExplicitGrid(GridSpec):
    """User supplied grid; one column per predictor, one row per grid point."""

    kind: ClassVar[str] = "explicit"

    values: pd.DataFrame

    def __post_init__(self) -> None:
        values = self.values
        if values is None:
            raise ConfigurationError(
                "An explicit grid requires a table of values",
                error_code="GRID_EXPLICIT_MISSING"
            )
        if not isinstance(values, pd.DataFrame):
            try:
                values = pd.DataFrame(values)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    "Explicit grid values must be tabular",
                    error_code="GRID_EXPLICIT_INVALID",
                    context={"type": type(self.values).__name__}
                ) from e

        if values.empty or values.shape[1] == 0:
            raise ConfigurationError(
                "Explicit grid must contain at least one row and one column",
                error_code="GRID_EXPLICIT_EMPTY",
                context={"shape": values.shape}
            )

        object.__setattr__(self, "values", values)

    def to_dict(self) -> Dict[str, Any]:
        return {"explicit_grid": self.values.to_dict(orient="list")}


GridSpecLike = Union[GridSpec, Mapping[str, Any], int, pd.DataFrame, None]


def coerce_grid_spec(spec: GridSpecLike) -> GridSpec:
    """Turn the accepted shorthand forms into a ``GridSpec`` variant.

    Accepted: ``None`` (default resolution), a ``GridSpec``, an integer
    resolution, a ``DataFrame`` (explicit grid) or a mapping with exactly
    one of ``resolution``, ``quantile_probs`` or ``explicit_grid``.
    """
    if spec is None:
        return ResolutionGrid()
    if isinstance(spec, GridSpec):
        return spec
    if isinstance(spec, pd.DataFrame):
        return ExplicitGrid(spec)
    if isinstance(spec, (int, np.integer)) and not isinstance(spec, bool):
        return ResolutionGrid(int(spec))
    if isinstance(spec, Mapping):
        keys = [k for k in ("resolution", "quantile_probs", "explicit_grid") if k in spec]
        unknown = set(spec) - {"resolution", "quantile_probs", "explicit_grid"}
        if len(keys) != 1 or unknown:
            raise ConfigurationError(
                "Grid specification must contain exactly one of "
                "'resolution', 'quantile_probs' or 'explicit_grid'",
                error_code="GRID_SPEC_COMBINATION_INVALID",
                context={"keys": sorted(spec)}
            )
        key = keys[0]
        if key == "resolution":
            return ResolutionGrid(spec[key])
        if key == "quantile_probs":
            probs = spec[key]
            return QuantileGrid(DEFAULT_QUANTILE_PROBS if probs is None else tuple(probs))
        return ExplicitGrid(spec[key])

    raise ConfigurationError(
        f"Unsupported grid specification: {spec!r}",
        error_code="GRID_SPEC_INVALID",
        context={"type": type(spec).__name__}
    )


@dataclass
class ExecutionConfig(_EnvOverridable):
    """How grid points are scheduled.

    ``progress`` may be a callable ``progress(completed, total)`` or
    ``True`` for the built-in logging reporter.
    """

    mode: str = "sequential"
    n_workers: Optional[int] = None
    backend: str = "processes"
    progress: Union[bool, Callable[[int, int], None], None] = None

    def __post_init__(self) -> None:
        validate_parameter("mode", self.mode, valid_values=list(VALID_MODES))
        validate_parameter("backend", self.backend, valid_values=list(VALID_BACKENDS))
        validate_parameter("n_workers", self.n_workers, min_value=1)

        if self.mode == "sequential" and self.n_workers not in (None, 1):
            raise ConfigurationError(
                f"Sequential execution cannot use {self.n_workers} workers; "
                "set mode='parallel' to use a worker pool",
                error_code="EXECUTION_COMBINATION_INVALID",
                context={"mode": self.mode, "n_workers": self.n_workers}
            )

        if self.progress not in (None, True, False) and not callable(self.progress):
            raise ConfigurationError(
                "progress must be a callable, True or None",
                error_code="EXECUTION_PROGRESS_INVALID",
                context={"progress": repr(self.progress)}
            )

    @classmethod
    def parallel(cls, n_workers: Optional[int] = None, backend: str = "processes", **kwargs: Any) -> "ExecutionConfig":
        """Shorthand for a parallel configuration."""
        return cls(mode="parallel", n_workers=n_workers, backend=backend, **kwargs)

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "ExecutionConfig":
        return _section_from_dict(cls, config_dict)

    def to_dict(self) -> Dict[str, Any]:
        config_dict = {"mode": self.mode, "n_workers": self.n_workers, "backend": self.backend}
        if isinstance(self.progress, bool):
            config_dict["progress"] = self.progress
        return config_dict


@dataclass
class PredictionConfig(_EnvOverridable):
    """Settings of the default prediction function.

    Ignored when a custom prediction function is passed.
    """

    task: str = "auto"
    which_class: Union[int, str] = 1
    prob: bool = True
    inv_link: Union[str, Callable[[np.ndarray], np.ndarray], None] = None
    na_rm: bool = True
    ice: bool = False

    def __post_init__(self) -> None:
        validate_parameter("task", self.task, valid_values=list(VALID_TASKS))

        if isinstance(self.inv_link, str):
            validate_parameter("inv_link", self.inv_link, valid_values=list(VALID_INV_LINKS))
        elif self.inv_link is not None and not callable(self.inv_link):
            raise ConfigurationError(
                "inv_link must be a callable or one of " + ", ".join(VALID_INV_LINKS),
                error_code="PREDICTION_INV_LINK_INVALID",
                context={"inv_link": repr(self.inv_link)}
            )

    def to_dict(self) -> Dict[str, Any]:
        config_dict = {
            "task": self.task,
            "which_class": self.which_class,
            "prob": self.prob,
            "na_rm": self.na_rm,
            "ice": self.ice,
        }
        if self.inv_link is None or isinstance(self.inv_link, str):
            config_dict["inv_link"] = self.inv_link
        return config_dict

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "PredictionConfig":
        return _section_from_dict(cls, config_dict)


@dataclass
class DependenceConfig(_EnvOverridable):
    """Complete configuration of a ``compute_dependence`` call.

    Example:
        >>> config = DependenceConfig(
        ...     grid=QuantileGrid((0.1, 0.5, 0.9)),
        ...     execution=ExecutionConfig.parallel(n_workers=4, backend="threads"),
        ...     chull=True
        ... )
    """

    grid: GridSpec = field(default_factory=ResolutionGrid)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    chull: bool = False
    center: bool = False
    approximate: bool = False
    trim_outliers: bool = False
    categorical: List[str] = field(default_factory=list)
    method: str = "brute"

    def __post_init__(self) -> None:
        self.grid = coerce_grid_spec(self.grid)
        if isinstance(self.execution, Mapping):
            self.execution = ExecutionConfig.from_dict(self.execution)
        if isinstance(self.prediction, Mapping):
            self.prediction = PredictionConfig.from_dict(self.prediction)
        self.categorical = list(self.categorical or [])

        validate_parameter("method", self.method, valid_values=list(VALID_METHODS))

        if self.method == "recursion" and self.prediction.ice:
            raise ConfigurationError(
                "The recursion method only produces averaged predictions; it cannot be combined with ICE",
                error_code="CONFIG_COMBINATION_INVALID",
                context={"method": self.method, "ice": True}
            )

        if self.method == "recursion" and self.approximate:
            raise ConfigurationError(
                "The recursion method cannot be combined with approximate=True",
                error_code="CONFIG_COMBINATION_INVALID",
                context={"method": self.method, "approximate": True}
            )

    def update_from_env(self, prefix: str = "PDP_") -> None:
        """Update flat fields and the execution/prediction sections from the environment.

        Args:
            prefix: Environment variable prefix, e.g. ``PDP_CHULL=true`` or
                ``PDP_EXECUTION_MODE=parallel``
        """
        self.execution.update_from_env(f"{prefix}EXECUTION_")
        self.prediction.update_from_env(f"{prefix}PREDICTION_")

        resolution_var = f"{prefix}GRID_RESOLUTION"
        if resolution_var in os.environ:
            try:
                self.grid = ResolutionGrid(int(os.environ[resolution_var]))
                logger.info(f"Updated grid resolution from environment: {self.grid.resolution}")
            except ValueError as e:
                logger.warning(f"Failed to parse environment variable {resolution_var}: {e}")

        super().update_from_env(prefix)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain, serializable dictionary."""
        return {
            "grid": self.grid.to_dict(),
            "execution": self.execution.to_dict(),
            "prediction": self.prediction.to_dict(),
            "chull": self.chull,
            "center": self.center,
            "approximate": self.approximate,
            "trim_outliers": self.trim_outliers,
            "categorical": list(self.categorical),
            "method": self.method,
        }

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "DependenceConfig":
        """Build a configuration from a (possibly partial) dictionary.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {sorted(unknown)}",
                error_code="CONFIG_UNKNOWN_KEYS",
                context={"unknown": sorted(unknown), "known": sorted(known)}
            )

        kwargs = {k: v for k, v in config_dict.items() if v is not None}

        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                error_code="CONFIG_INVALID"
            ) from e
