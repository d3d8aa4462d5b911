"""Post-processing observables for worldlines.

- velocity_norm: g_ab v^a v^b (0 for photons, 1 for unit timelike)
- tetrad_gram: matrix of tetrad inner products, diag(1, -1, -1, -1) when orthonormal
- interpolate_crossing: where a coordinate crosses a boundary between two samples
"""
from __future__ import annotations

import jax.numpy as jnp
from jaxtyping import Array, Float

from ..geometry.types import Point, inner


def velocity_norm(worldline: object) -> Float[Array, ""]:
    """Compute g_ab v^a v^b at the worldline's current position.

    Parameters
    ----------
    worldline : Particle or Entity
        Anything with ``pos``, ``vel`` and ``chart``.

    Returns
    -------
    Float[Array, ""]
        Zero for a null geodesic, +1 for a unit timelike 4-velocity in the
        (+,-,-,-) signature.  Drift measures integration error.
    """
    g = worldline.chart.g(worldline.pos)
    return inner(g, worldline.vel, worldline.vel)


def tetrad_gram(entity: object) -> Float[Array, "4 4"]:
    """G_ij = g(e_i, e_j) over the entity's tetrad slots."""
    g = entity.chart.metric_components(entity.pos.coords)
    frame = jnp.stack([e.components for e in entity.tetrad])
    return jnp.einsum("ia,ab,jb->ij", frame, g, frame)


def interpolate_crossing(
    prev: Point, curr: Point, index: int, target: float
) -> Point:
    """Linearly interpolate the point where coordinate *index* equals *target*.

    Parameters
    ----------
    prev, curr : Point
        Two consecutive samples in the same chart bracketing the crossing.
    index : int
        Coordinate that crosses the boundary (e.g. 1 for r).
    target : float
        Boundary value.

    Returns
    -------
    Point
        Interpolated point.  Outside the bracket the result is an
        extrapolation; equal samples give NaN.
    """
    span = curr.coords[index] - prev.coords[index]
    frac = (target - prev.coords[index]) / span
    return Point(prev.chart, prev.coords + frac * (curr.coords - prev.coords))
