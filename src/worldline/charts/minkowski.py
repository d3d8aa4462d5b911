"""Minkowski (flat) spacetime in Cartesian coordinates.

    ds^2 = dt^2 - dx^2 - dy^2 - dz^2

All Christoffel symbols vanish, which makes this chart the reference
substrate for free-particle and accelerated-observer checks.
"""

from __future__ import annotations

import jax.numpy as jnp
import sympy as sp
from beartype import beartype
from jaxtyping import Array, Float, jaxtyped

from ..geometry.chart import Chart, SymbolicMetric

_ETA = (1.0, -1.0, -1.0, -1.0)


class MinkowskiChart(Chart):
    """Flat spacetime, coordinates (t, x, y, z).  No parameters."""

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return jnp.diag(jnp.array(_ETA))

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        return jnp.diag(jnp.array(_ETA))

    def christoffel_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4 4"]:
        return jnp.zeros((4, 4, 4))

    def symbolic(self) -> SymbolicMetric:
        t, x, y, z = sp.symbols("t x y z")
        return SymbolicMetric([t, x, y, z], sp.diag(1, -1, -1, -1))

    def name(self) -> str:
        return "Minkowski"
