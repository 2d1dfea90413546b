"""PDP Toolkit - Configuration Components.

Type-safe configuration for grids, execution and the default prediction
function, plus YAML/JSON loading.

Example:
    >>> from pdp_toolkit.config import DependenceConfig, QuantileGrid, load_config
    >>> config = DependenceConfig(grid=QuantileGrid((0.1, 0.5, 0.9)))
    >>> config = load_config('config/pdp.yaml')
"""

from .dependence_config import (
    GridSpec,
    ResolutionGrid,
    QuantileGrid,
    ExplicitGrid,
    ExecutionConfig,
    PredictionConfig,
    DependenceConfig,
    coerce_grid_spec
)
from .loader import load_config, save_config

__all__ = [
    # Grid specifications
    'GridSpec',
    'ResolutionGrid',
    'QuantileGrid',
    'ExplicitGrid',
    'coerce_grid_spec',

    # Call configuration
    'ExecutionConfig',
    'PredictionConfig',
    'DependenceConfig',

    # Configuration utilities
    'load_config',
    'save_config'
]
