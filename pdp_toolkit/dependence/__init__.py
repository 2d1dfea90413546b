"""PDP Toolkit - Partial Dependence Components.

This module provides the dependence engine: grid construction, the
prediction function contract, grid point evaluation, sequential and
parallel execution, and assembly of the result table.

Key Components:
- compute_dependence: one-call PDP / ICE / summary computation
- PartialDependenceExplainer: explainer facade with per-instance configuration
- build_grid / filter_convex_hull: grids over one or more predictors
- DefaultPrediction: averaged regression or class probability predictions
- SequentialStrategy / ParallelStrategy: scheduling of grid points

Example:
    >>> from pdp_toolkit.dependence import compute_dependence, QuantileGrid
    >>> table = compute_dependence(model, X_train, ["age"], grid_spec=QuantileGrid())
"""

from .partial_dependence import compute_dependence, PartialDependenceExplainer
from .grid import build_grid, filter_convex_hull, is_categorical, GridWarning
from .prediction import (
    DefaultPrediction,
    PredictionOutput,
    validate_prediction,
    resolve_prediction_fn
)
from .evaluator import DependenceEvaluator, evaluate_point
from .execution import (
    ExecutionStrategy,
    SequentialStrategy,
    ParallelStrategy,
    ProgressReporter,
    resolve_strategy
)
from .assembler import assemble_results, center_curves
from .data import validate_training_data, exemplar
from ..config.dependence_config import ResolutionGrid, QuantileGrid, ExplicitGrid

# Base classes
from .base import BaseExplainer

__all__ = [
    # Entry points
    'compute_dependence',
    'PartialDependenceExplainer',

    # Grid construction
    'build_grid',
    'filter_convex_hull',
    'is_categorical',
    'GridWarning',
    'ResolutionGrid',
    'QuantileGrid',
    'ExplicitGrid',

    # Prediction contract
    'DefaultPrediction',
    'PredictionOutput',
    'validate_prediction',
    'resolve_prediction_fn',

    # Evaluation and execution
    'DependenceEvaluator',
    'evaluate_point',
    'ExecutionStrategy',
    'SequentialStrategy',
    'ParallelStrategy',
    'ProgressReporter',
    'resolve_strategy',

    # Result assembly
    'assemble_results',
    'center_curves',

    # Data helpers
    'validate_training_data',
    'exemplar',

    # Base classes
    'BaseExplainer'
]
