# pdp_toolkit/utils/exceptions.py
"""Custom exception hierarchy for pdp_toolkit package.

Every failure surfaced by ``compute_dependence`` is one of the classes
below. A call either returns a complete result table or raises; nothing
is retried and no partial table is ever returned.
"""

from typing import Any, Optional, Dict, List


class PDPError(Exception):
    """Base exception for all pdp_toolkit package errors.

    This is the root exception class that all other package-specific
    exceptions inherit from. It carries an optional error code and a
    context dictionary for debugging.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize PDPError.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of error."""
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg

    def __reduce__(self):
        # Keep code and context when the error crosses a process boundary
        return (self.__class__, (self.message, self.error_code, self.context))


class ConfigurationError(PDPError):
    """Raised when the call is configured incorrectly.

    This exception is raised for issues with:
    - Unknown or duplicated predictor names
    - Grid resolution below 2 or invalid quantile probabilities
    - Explicit grids with missing or extra columns
    - Unsupported option combinations
    """
    pass


class DataValidationError(ConfigurationError):
    """Raised when the training data cannot be used.

    This exception is raised for issues with:
    - Empty training data
    - Inputs that are not tabular
    - Predictor columns without any observed values
    """
    pass


class ContractViolationError(PDPError):
    """Raised when a prediction function returns an unsupported shape.

    Accepted shapes are a single scalar, a fixed-size (named) tuple of
    scalars, or a per-row vector whose length equals the number of
    training rows. The shape must also stay the same across grid points.
    """
    pass


class EvaluationFailure(PDPError):
    """Raised when the prediction function fails at a grid point.

    The original exception is chained as ``__cause__`` and the grid
    index is recorded in the context. The whole call is aborted.
    """
    pass


class ResourceError(PDPError):
    """Raised when the parallel worker pool cannot do its job.

    This exception is raised for issues with:
    - Worker pool creation
    - Broken or killed worker processes
    - Tasks that cannot be shipped to workers (pickling)
    """
    pass


# Utility functions for error handling
def handle_and_reraise(
    exception: Exception,
    error_class: type,
    message: str,
    error_code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Handle an exception and re-raise as a pdp_toolkit exception.

    Package exceptions are re-raised untouched so that their specific
    type reaches the caller. Anything else is converted into
    ``error_class`` with the original exception chained.

    Args:
        exception: Original exception that was caught
        error_class: PDPError subclass to raise
        message: Custom error message
        error_code: Optional error code
        context: Optional error context

    Raises:
        error_class: The specified pdp_toolkit exception
    """
    if isinstance(exception, PDPError):
        raise exception

    if context is None:
        context = {}

    context["original_error"] = str(exception)
    context["original_error_type"] = type(exception).__name__

    raise error_class(message, error_code, context) from exception


def validate_parameter(
    param_name: str,
    param_value: Any,
    valid_values: Optional[List[Any]] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    required: bool = False
) -> None:
    """Validate a parameter value and raise ConfigurationError if invalid.

    Args:
        param_name: Name of the parameter being validated
        param_value: Value to validate
        valid_values: List of valid values (if applicable)
        min_value: Minimum allowed value (for numeric parameters)
        max_value: Maximum allowed value (for numeric parameters)
        required: Whether the parameter is required (cannot be None)

    Raises:
        ConfigurationError: If validation fails
    """
    if required and param_value is None:
        raise ConfigurationError(
            f"Parameter '{param_name}' is required but was not provided",
            error_code="PARAM_REQUIRED",
            context={"parameter": param_name}
        )

    if param_value is None:
        return  # Optional parameter not provided

    if valid_values is not None and param_value not in valid_values:
        raise ConfigurationError(
            f"Parameter '{param_name}' must be one of {valid_values}, got {param_value}",
            error_code="PARAM_INVALID_VALUE",
            context={"parameter": param_name, "value": param_value, "valid_values": valid_values}
        )

    if min_value is not None and param_value < min_value:
        raise ConfigurationError(
            f"Parameter '{param_name}' must be >= {min_value}, got {param_value}",
            error_code="PARAM_TOO_SMALL",
            context={"parameter": param_name, "value": param_value, "min_value": min_value}
        )

    if max_value is not None and param_value > max_value:
        raise ConfigurationError(
            f"Parameter '{param_name}' must be <= {max_value}, got {param_value}",
            error_code="PARAM_TOO_LARGE",
            context={"parameter": param_name, "value": param_value, "max_value": max_value}
        )


def create_error_context(**kwargs: Any) -> Dict[str, Any]:
    """Create an error context dictionary with standardized keys.

    Args:
        **kwargs: Key-value pairs to include in context

    Returns:
        Dictionary with error context information
    """
    context = {}
    for key, value in kwargs.items():
        # Convert complex objects to strings for serialization safety
        if hasattr(value, '__dict__') or hasattr(value, '__slots__'):
            context[key] = str(value)
        else:
            context[key] = value

    return context
