"""Default table of chart transitions.

``create_default_registry`` wires every chart in this package to the charts
it can be converted to.  The near-pole patches are registered once per
family; which pole a conversion uses is read from the near-pole chart
instance.
"""

from __future__ import annotations

from ..geometry.conversion import ConversionRegistry
from .kerr import KerrEddingtonFinkelsteinChart
from .polar import (
    NearPoleEddingtonFinkelsteinChart,
    NearPoleKerrChart,
    NearPoleSchwarzschildChart,
    NearPoleToSpherical,
    SphericalToNearPole,
)
from .schwarzschild import (
    EddingtonFinkelsteinChart,
    EddingtonFinkelsteinToSchwarzschild,
    SchwarzschildChart,
    SchwarzschildToEddingtonFinkelstein,
)

# (spherical chart type, near-pole chart type)
_POLAR_PAIRS = (
    (SchwarzschildChart, NearPoleSchwarzschildChart),
    (EddingtonFinkelsteinChart, NearPoleEddingtonFinkelsteinChart),
    (KerrEddingtonFinkelsteinChart, NearPoleKerrChart),
)


def create_default_registry() -> ConversionRegistry:
    """Create a registry pre-loaded with all chart transitions."""
    registry = ConversionRegistry()
    registry.register(
        SchwarzschildChart, EddingtonFinkelsteinChart,
        SchwarzschildToEddingtonFinkelstein,
    )
    registry.register(
        EddingtonFinkelsteinChart, SchwarzschildChart,
        EddingtonFinkelsteinToSchwarzschild,
    )
    for spherical, near_pole in _POLAR_PAIRS:
        registry.register(spherical, near_pole, SphericalToNearPole)
        registry.register(near_pole, spherical, NearPoleToSpherical)
    return registry
