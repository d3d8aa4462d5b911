"""Charts, points, tensors and chart transitions on a 4-dimensional spacetime.

"""

from .chart import (
    Chart,
    SymbolicMetric,
    christoffel_symbols,
    sympy_metric_inverse_to_jax,
    sympy_metric_to_jax,
)
from .conversion import ChartConversion, ConversionRegistry
from .types import DIMENSION, Point, Tensor, contract, inner

__all__ = [
    "DIMENSION",
    "Chart",
    "ChartConversion",
    "ConversionRegistry",
    "Point",
    "SymbolicMetric",
    "Tensor",
    "christoffel_symbols",
    "contract",
    "inner",
    "sympy_metric_inverse_to_jax",
    "sympy_metric_to_jax",
]
