"""Concrete spacetime charts and the transitions between them."""

from .kerr import KerrEddingtonFinkelsteinChart
from .minkowski import MinkowskiChart
from .polar import (
    NearPoleChart,
    NearPoleEddingtonFinkelsteinChart,
    NearPoleKerrChart,
    NearPoleSchwarzschildChart,
    NearPoleToSpherical,
    SphericalToNearPole,
)
from .registry import create_default_registry
from .schwarzschild import (
    EddingtonFinkelsteinChart,
    EddingtonFinkelsteinToSchwarzschild,
    SchwarzschildChart,
    SchwarzschildToEddingtonFinkelstein,
    eddington_finkelstein_symbolic,
    schwarzschild_symbolic,
    tortoise_shift,
)

__all__ = [
    "EddingtonFinkelsteinChart",
    "EddingtonFinkelsteinToSchwarzschild",
    "KerrEddingtonFinkelsteinChart",
    "MinkowskiChart",
    "NearPoleChart",
    "NearPoleEddingtonFinkelsteinChart",
    "NearPoleKerrChart",
    "NearPoleSchwarzschildChart",
    "NearPoleToSpherical",
    "SchwarzschildChart",
    "SchwarzschildToEddingtonFinkelstein",
    "SphericalToNearPole",
    "create_default_registry",
    "eddington_finkelstein_symbolic",
    "schwarzschild_symbolic",
    "tortoise_shift",
]
