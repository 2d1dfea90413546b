"""PDP Toolkit - Utility Components.

This module provides shared utilities including logging, timing and the
exception hierarchy used throughout the package.

Example:
    >>> from pdp_toolkit.utils import get_logger, timed_operation
    >>> logger = get_logger(__name__)
    >>> with timed_operation('grid_construction'):
    ...     pass
"""

from .logger import (
    get_logger,
    configure_logging,
    set_log_level,
    temporary_log_level
)
from .timer import (
    timer,
    timed_operation,
    get_performance_stats,
    reset_performance_stats
)
from .exceptions import (
    PDPError,
    ConfigurationError,
    DataValidationError,
    ContractViolationError,
    EvaluationFailure,
    ResourceError,
    handle_and_reraise,
    validate_parameter,
    create_error_context
)

__all__ = [
    # Logging utilities
    'get_logger',
    'configure_logging',
    'set_log_level',
    'temporary_log_level',

    # Timing utilities
    'timer',
    'timed_operation',
    'get_performance_stats',
    'reset_performance_stats',

    # Exceptions
    'PDPError',
    'ConfigurationError',
    'DataValidationError',
    'ContractViolationError',
    'EvaluationFailure',
    'ResourceError',
    'handle_and_reraise',
    'validate_parameter',
    'create_error_context'
]
