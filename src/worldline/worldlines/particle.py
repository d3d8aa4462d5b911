"""Geodesic worldlines: a point and its tangent vector.

The equation of motion is the geodesic equation written as a first-order
system over the flat state ``[x^a, v^a]``:

    dx^a/dl = v^a
    dv^a/dl = -Gamma^a_{bc} v^b v^c

The connection contraction goes through :func:`~worldline.geometry.contract`,
so the same code serves every chart.  The per-evaluation kernel is wrapped in
``eqx.filter_jit``; it is retraced once per chart type and parameter set.

Nothing is checked about the chart's domain.  Once the worldline leaves it
(e.g. crosses r = 2M in the Schwarzschild chart) the derivative turns NaN and
stays NaN; detecting that is the caller's job.
"""
from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..geometry.chart import Chart
from ..geometry.conversion import ChartConversion
from ..geometry.types import DIMENSION, Point, Tensor, contract
from ..numeric.state_vector import StateVector


@eqx.filter_jit
def geodesic_rhs(x: Point, v: Tensor) -> Float[Array, "8"]:
    """[v^a, -Gamma^a_{bc} v^b v^c] at *x*."""
    gamma = x.chart.christoffel(x)
    accel = contract(contract(gamma, v, 2, 0), v, 1, 0)
    return jnp.concatenate([v.components, -accel.components])


def _check_conversion_source(chart: Chart, conversion: ChartConversion) -> None:
    if type(conversion.source) is not type(chart):
        raise ValueError(
            f"Conversion starts in {conversion.source.name()}, but the worldline "
            f"lives in {chart.name()}"
        )


class Particle:
    """A freely falling particle (or photon).

    Mutable: the integrators advance it in place through
    :meth:`shift_in_place`.  The velocity is always re-anchored at the current
    position.

    Parameters
    ----------
    x : Point
        Initial position.
    v : Tensor
        Initial contravariant velocity (``'u'``), in the same chart as *x*.

    Raises
    ------
    ValueError
        If *v* is not a vector or lives in a different chart type than *x*.
    """

    def __init__(self, x: Point, v: Tensor) -> None:
        if v.index_positions != "u":
            raise ValueError(
                f"Particle velocity must be a vector ('u'), got {v.index_positions!r}"
            )
        if type(v.chart) is not type(x.chart):
            raise ValueError(
                f"Velocity chart {v.chart.name()} differs from position chart "
                f"{x.chart.name()}"
            )
        self.x = x
        self.v = v.with_point(x)

    def __repr__(self) -> str:
        return (f"Particle(chart={self.chart.name()}, x={self.x.coords}, "
                f"v={self.v.components})")

    # accessors -----------------------------------------------------------

    @property
    def pos(self) -> Point:
        return self.x

    @property
    def vel(self) -> Tensor:
        return self.v

    @property
    def chart(self) -> Chart:
        return self.x.chart

    def copy(self) -> Particle:
        # Point and Tensor are immutable, sharing them is safe.
        return Particle(self.x, self.v)

    # integrator protocol -------------------------------------------------

    def derivative(self) -> StateVector:
        """Geodesic right-hand side as a length-8 ``StateVector``."""
        return StateVector(geodesic_rhs(self.x, self.v))

    def shift_in_place(self, direction: StateVector, amount: float) -> None:
        """Advance ``[x, v]`` by ``amount * direction`` and re-anchor ``v``."""
        delta = direction.components * amount
        self.x = self.x.shifted(delta[:DIMENSION])
        self.v = Tensor(self.x, self.v.components + delta[DIMENSION:], "u")

    def shifted(self, direction: StateVector, amount: float) -> Particle:
        moved = self.copy()
        moved.shift_in_place(direction, amount)
        return moved

    # chart transitions ---------------------------------------------------

    def convert(self, conversion: ChartConversion) -> Particle:
        """The same particle expressed in ``conversion.target``.

        The position is reprojected and the velocity pushed forward with the
        conversion's Jacobian.  Any integrator that cached a derivative of
        this particle must be reset before driving the converted one.
        """
        _check_conversion_source(self.chart, conversion)
        v = self.v.convert(conversion)
        return Particle(v.point, v)
