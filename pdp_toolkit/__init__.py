# pdp_toolkit/__init__.py
"""PDP Toolkit - Partial Dependence and ICE for Any Fitted Model.

Estimates how a model's predictions depend on a subset of its predictors
by evaluating a prediction function over a grid of predictor values.

Key Features:
- 📐 Resolution, quantile or user supplied grids; categorical levels kept as observed
- 🧊 Partial dependence, ICE and centered ICE from a single entry point
- 🔌 Arbitrary prediction functions (averages, named summaries, per-row curves)
- 🔺 Convex hull filtering against extrapolation
- 🚀 Sequential, process, thread or joblib execution with identical results
- 🔧 Type-safe configuration from code, YAML or the environment

Quick Start:
    >>> import pdp_toolkit as pdp
    >>>
    >>> # Partial dependence on two predictors, 20 points each
    >>> table = pdp.compute_dependence(model, X_train, ["age", "income"], grid_spec=20)
    >>>
    >>> # Centered ICE curves on a worker pool
    >>> curves = pdp.compute_dependence(
    ...     model, X_train, "age",
    ...     prediction={"ice": True}, center=True,
    ...     execution=pdp.ExecutionConfig.parallel(n_workers=4)
    ... )
"""

# Package metadata
__version__ = "1.0.0"
__description__ = "Partial dependence and individual conditional expectation for fitted models"

# Configure package-level logging
from .utils.logger import configure_logging, get_logger

# Configure with sensible defaults
configure_logging(
    level="INFO",
    format_style="detailed",
    include_console=True
)

logger = get_logger(__name__)
logger.debug(f"PDP Toolkit v{__version__} initialized")

# Dependence engine
from .dependence.partial_dependence import compute_dependence, PartialDependenceExplainer
from .dependence.grid import build_grid, filter_convex_hull, GridWarning
from .dependence.prediction import DefaultPrediction, validate_prediction
from .dependence.execution import (
    ExecutionStrategy,
    SequentialStrategy,
    ParallelStrategy,
    ProgressReporter
)
from .dependence.assembler import center_curves

# Configuration system
from .config.dependence_config import (
    ResolutionGrid,
    QuantileGrid,
    ExplicitGrid,
    ExecutionConfig,
    PredictionConfig,
    DependenceConfig
)
from .config.loader import load_config, save_config

# Utilities
from .utils.logger import set_log_level
from .utils.timer import timer, timed_operation
from .utils.exceptions import (
    PDPError,
    ConfigurationError,
    DataValidationError,
    ContractViolationError,
    EvaluationFailure,
    ResourceError
)

# Public API definition - what users should import
__all__ = [
    # Core entry points
    'compute_dependence',
    'PartialDependenceExplainer',

    # Grids
    'build_grid',
    'filter_convex_hull',
    'GridWarning',
    'ResolutionGrid',
    'QuantileGrid',
    'ExplicitGrid',

    # Prediction and execution
    'DefaultPrediction',
    'validate_prediction',
    'ExecutionStrategy',
    'SequentialStrategy',
    'ParallelStrategy',
    'ProgressReporter',
    'center_curves',

    # Configuration
    'ExecutionConfig',
    'PredictionConfig',
    'DependenceConfig',
    'load_config',
    'save_config',

    # Utilities
    'get_logger',
    'configure_logging',
    'set_log_level',
    'timer',
    'timed_operation',

    # Exceptions
    'PDPError',
    'ConfigurationError',
    'DataValidationError',
    'ContractViolationError',
    'EvaluationFailure',
    'ResourceError',

    # Metadata
    '__version__',
]
