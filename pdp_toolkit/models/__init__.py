"""PDP Toolkit - Model capability interfaces."""

from .protocols import (
    PredictorProtocol,
    ProbabilisticPredictorProtocol,
    RecursivePartialDependenceProtocol
)

__all__ = [
    'PredictorProtocol',
    'ProbabilisticPredictorProtocol',
    'RecursivePartialDependenceProtocol'
]
