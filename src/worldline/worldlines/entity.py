"""Accelerated, rotating observers carrying an orthonormal tetrad.

An ``Entity`` is a point plus four vectors ``(u, forward, right, up)``: the
4-velocity and three spatial directions.  Applied force ``f`` and angular
velocity ``w`` are 3-vectors in the observer's own (forward, right, up)
frame.  They enter the equation of motion through the generator

        | 0   f0   f1   f2 |
    G = | f0  0   -w2   w1 |
        | f1  w2   0   -w0 |
        | f2 -w1   w0   0  |

acting on the tetrad slots, on top of parallel transport:

    dx^a/dtau   = u^a
    de_j^a/dtau = sum_i G[i, j] e_i^a - Gamma^a_{bc} u^b e_j^c

With ``f = w = 0`` every slot is parallel transported along the geodesic of
``u``.  The flat state is ``[x, u, forward, right, up]`` (length 20).

The tetrad stays orthonormal only up to integration error.  Call
:meth:`Entity.orthonormalize` after construction from rough input, after a
chart conversion and periodically along long runs.
"""
from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..geometry.chart import Chart
from ..geometry.conversion import ChartConversion
from ..geometry.types import DIMENSION, Point, Tensor, contract, inner
from ..numeric.state_vector import StateVector
from .particle import _check_conversion_source

TETRAD_SIZE = 4


def frame_generator(
    force: Float[Array, "3"], ang_vel: Float[Array, "3"]
) -> Float[Array, "4 4"]:
    """Boost (force) plus rotation (angular velocity) generator on the tetrad."""
    f0, f1, f2 = force
    w0, w1, w2 = ang_vel
    return jnp.array([
        [0.0, f0, f1, f2],
        [f0, 0.0, -w2, w1],
        [f1, w2, 0.0, -w0],
        [f2, -w1, w0, 0.0],
    ])


@eqx.filter_jit
def frame_rhs(
    x: Point,
    tetrad: tuple[Tensor, ...],
    force: Float[Array, "3"],
    ang_vel: Float[Array, "3"],
) -> Float[Array, "20"]:
    """Position and tetrad derivatives, flattened slot by slot."""
    u = tetrad[0]
    # Gamma^a_{bc} u^b -> 'ud'
    transport = contract(x.chart.christoffel(x), u, 1, 0)
    frame = jnp.stack([e.components for e in tetrad])
    # slot j: sum_i G[i, j] e_i
    boosted = jnp.tensordot(frame_generator(force, ang_vel), frame, axes=([0], [0]))
    slots = [
        boosted[j] - contract(transport, e, 1, 0).components
        for j, e in enumerate(tetrad)
    ]
    return jnp.concatenate([u.components, *slots])


class Entity:
    """An observer with position, tetrad and applied force/torque.

    Parameters
    ----------
    x : Point
        Initial position.
    u, forward, right, up : Tensor
        Tetrad vectors (``'u'``) in the chart of *x*.  They are not
        orthonormalised automatically.

    Raises
    ------
    ValueError
        If a tetrad member is not a vector or lives in another chart type.
    """

    def __init__(
        self, x: Point, u: Tensor, forward: Tensor, right: Tensor, up: Tensor
    ) -> None:
        for e in (u, forward, right, up):
            if e.index_positions != "u":
                raise ValueError(
                    f"Tetrad members must be vectors ('u'), got {e.index_positions!r}"
                )
            if type(e.chart) is not type(x.chart):
                raise ValueError(
                    f"Tetrad chart {e.chart.name()} differs from position chart "
                    f"{x.chart.name()}"
                )
        self.x = x
        self.dirs = tuple(e.with_point(x) for e in (u, forward, right, up))
        self.force = jnp.zeros(3)
        self.ang_vel = jnp.zeros(3)

    def __repr__(self) -> str:
        return (f"Entity(chart={self.chart.name()}, x={self.x.coords}, "
                f"u={self.dirs[0].components})")

    # accessors -----------------------------------------------------------

    @property
    def pos(self) -> Point:
        return self.x

    @property
    def vel(self) -> Tensor:
        """The 4-velocity (tetrad slot 0)."""
        return self.dirs[0]

    @property
    def tetrad(self) -> tuple[Tensor, Tensor, Tensor, Tensor]:
        return self.dirs

    @property
    def chart(self) -> Chart:
        return self.x.chart

    def copy(self) -> Entity:
        twin = Entity(self.x, *self.dirs)
        twin.force = self.force
        twin.ang_vel = self.ang_vel
        return twin

    # frame maintenance ---------------------------------------------------

    def orthonormalize(self) -> None:
        """Gram-Schmidt the tetrad in slot order under the metric at ``x``.

        Each vector loses its projection on all earlier ones and is scaled by
        ``1 / sqrt(|g(e, e)|)``, so slot 0 fixes the timelike direction.
        """
        g = self.chart.g(self.x)
        done: list[Tensor] = []
        for e in self.dirs:
            for prev in done:
                e = e - prev * (inner(g, e, prev) / inner(g, prev, prev))
            done.append(e / jnp.sqrt(jnp.abs(inner(g, e, e))))
        self.dirs = tuple(done)

    # applied influences --------------------------------------------------

    def add_force(self, force: object) -> None:
        """Accumulate a proper acceleration given in the (forward, right, up) frame."""
        self.force = self.force + jnp.asarray(force, dtype=jnp.float64)

    def add_ang_vel(self, ang_vel: object) -> None:
        """Accumulate an angular velocity given in the (forward, right, up) frame."""
        self.ang_vel = self.ang_vel + jnp.asarray(ang_vel, dtype=jnp.float64)

    def reset_force(self) -> None:
        self.force = jnp.zeros(3)

    def reset_ang_vel(self) -> None:
        self.ang_vel = jnp.zeros(3)

    # integrator protocol -------------------------------------------------

    def derivative(self) -> StateVector:
        """Length-20 ``StateVector`` ``[u, du, dforward, dright, dup]``."""
        return StateVector(frame_rhs(self.x, self.dirs, self.force, self.ang_vel))

    def shift_in_place(self, direction: StateVector, amount: float) -> None:
        """Advance position and tetrad by ``amount * direction`` and re-anchor."""
        delta = direction.components * amount
        self.x = self.x.shifted(delta[:DIMENSION])
        self.dirs = tuple(
            Tensor(
                self.x,
                e.components + delta[DIMENSION * (k + 1):DIMENSION * (k + 2)],
                "u",
            )
            for k, e in enumerate(self.dirs)
        )

    def shifted(self, direction: StateVector, amount: float) -> Entity:
        moved = self.copy()
        moved.shift_in_place(direction, amount)
        return moved

    # chart transitions ---------------------------------------------------

    def convert(self, conversion: ChartConversion) -> Entity:
        """The same observer expressed in ``conversion.target``.

        Force and angular velocity live in the observer's frame and carry over
        unchanged.
        """
        _check_conversion_source(self.chart, conversion)
        dirs = [e.convert(conversion) for e in self.dirs]
        converted = Entity(dirs[0].point, *dirs)
        converted.force = self.force
        converted.ang_vel = self.ang_vel
        return converted
