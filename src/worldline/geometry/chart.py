"""Chart contract: metric, inverse metric and connection on one coordinate patch.

A ``Chart`` is a pure function bundle.  Given coordinates it returns the
covariant metric g_{ab}, the inverse metric g^{ab} and the Christoffel symbols
Gamma^a_{bc}; the public ``g`` / ``inv_g`` / ``christoffel`` methods wrap them
as tensors anchored at a ``Point``.

Concrete charts only *must* provide ``metric_components``.  The inverse
defaults to a dense matrix inverse and the connection to exact forward-mode
autodiff of the metric (``jax.jacfwd``); closed forms override both where
they are known.

Index conventions:
    - metric: g_{ab} as (4,4) array, index signature 'dd'
    - inverse metric: g^{ab} as (4,4) array, 'uu'
    - Christoffel: Gamma^a_{bc} as (4,4,4) array [upper, lower, lower], 'udd'

Being an ``eqx.Module``, every chart is a JAX pytree; physical parameters
(mass, spin) are ordinary immutable fields.  Nothing is checked about the
chart's domain: at or beyond a coordinate singularity the functions return
NaN or Inf.
"""
from __future__ import annotations

from abc import abstractmethod
from functools import cached_property
from typing import Callable

import equinox as eqx
import jax
import jax.numpy as jnp
import sympy as sp
from jaxtyping import Array, Float
from sympy import lambdify

from .types import Point, Tensor


# ---------------------------------------------------------------------------
# Christoffel symbols via autodiff
# ---------------------------------------------------------------------------


def christoffel_symbols(
    metric_fn: Callable[[Float[Array, "4"]], Float[Array, "4 4"]],
    coords: Float[Array, "4"],
    metric_inv: Float[Array, "4 4"] | None = None,
) -> Float[Array, "4 4 4"]:
    """Christoffel symbols of the second kind at a single point.

    Gamma^lam_{mu nu} = 1/2 g^{lam sigma} (d_mu g_{nu sigma} + d_nu g_{mu sigma} - d_sigma g_{mu nu})

    Uses jax.jacfwd(metric_fn) for exact partial derivatives.

    Args:
        metric_fn: Callable mapping coords (4,) -> metric tensor (4,4).
        coords: Coordinates as shape (4,) array.
        metric_inv: Optional precomputed inverse metric at *coords*.

    Returns:
        Christoffel symbols of shape (4, 4, 4) with index convention
        [upper, lower, lower] = Gamma^lam_{mu nu}.
    """
    g_inv = jnp.linalg.inv(metric_fn(coords)) if metric_inv is None else metric_inv
    # dg[a, b, c] = d g_{ab} / d x^c  (derivative index is LAST per JAX jacfwd convention)
    dg = jax.jacfwd(metric_fn)(coords)

    term1 = jnp.einsum('ls,nsm->lmn', g_inv, dg)  # g^{ls} d_m g_{ns}
    term2 = jnp.einsum('ls,msn->lmn', g_inv, dg)  # g^{ls} d_n g_{ms}
    term3 = jnp.einsum('ls,mns->lmn', g_inv, dg)  # g^{ls} d_s g_{mn}

    return 0.5 * (term1 + term2 - term3)


# ---------------------------------------------------------------------------
# SymbolicMetric
# ---------------------------------------------------------------------------


class SymbolicMetric:
    """Symbolic metric specification using SymPy.

    Holds a coordinate symbol list and a 4x4 SymPy Matrix representing
    the metric tensor *g_{ab}*.  The inverse is computed lazily and cached.

    Parameters
    ----------
    coords : list[sp.Symbol]
        Four coordinate symbols, e.g. ``[t, r, theta, phi]``.
    g_matrix : sp.Matrix
        Symmetric (4, 4) metric tensor expressed in *coords*.

    Raises
    ------
    ValueError
        If *coords* does not have length 4 or *g_matrix* is not (4, 4).
    """

    def __init__(self, coords: list[sp.Symbol], g_matrix: sp.Matrix) -> None:
        if len(coords) != 4:
            raise ValueError(
                f"Expected 4 coordinate symbols, got {len(coords)}"
            )
        if g_matrix.shape != (4, 4):
            raise ValueError(
                f"Expected (4, 4) metric matrix, got {g_matrix.shape}"
            )
        self.coords = list(coords)
        self.g = g_matrix

    @cached_property
    def g_inv(self) -> sp.Matrix:
        """Inverse metric tensor *g^{ab}* (computed once, then cached)."""
        return sp.simplify(self.g.inv())


def sympy_metric_to_jax(
    symbolic_metric: SymbolicMetric,
) -> Callable[[Float[Array, "4"]], Float[Array, "4 4"]]:
    """Convert a SymPy metric to a JAX function ``coords (4,) -> g_ab (4, 4)``."""
    f_raw = lambdify(symbolic_metric.coords, symbolic_metric.g, modules="jax")

    def f_wrapped(coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return jnp.asarray(f_raw(*coords), dtype=jnp.float64)

    return f_wrapped


def sympy_metric_inverse_to_jax(
    symbolic_metric: SymbolicMetric,
) -> Callable[[Float[Array, "4"]], Float[Array, "4 4"]]:
    """Convert a SymPy inverse metric to a JAX function ``coords (4,) -> g^{ab} (4, 4)``."""
    f_raw = lambdify(
        symbolic_metric.coords, symbolic_metric.g_inv, modules="jax"
    )

    def f_wrapped(coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return jnp.asarray(f_raw(*coords), dtype=jnp.float64)

    return f_wrapped


# ---------------------------------------------------------------------------
# Chart (abstract base Equinox module / JAX pytree)
# ---------------------------------------------------------------------------


class Chart(eqx.Module):
    """Abstract base for a coordinate patch of a 4-dimensional spacetime.

    Subclasses define a pointwise mapping from coordinates to the 4x4 metric
    tensor *g_{ab}*, and may override the inverse metric and connection with
    closed forms.
    """

    @abstractmethod
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        """Evaluate *g_{ab}* at a single point.

        Parameters
        ----------
        coords : Float[Array, "4"]
            Chart coordinates.

        Returns
        -------
        Float[Array, "4 4"]
            The covariant metric at the given point.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable chart name."""
        ...

    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        """Evaluate *g^{ab}* (dense inverse unless overridden)."""
        return jnp.linalg.inv(self.metric_components(coords))

    def christoffel_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4 4"]:
        """Evaluate *Gamma^a_{bc}* (autodiff of the metric unless overridden)."""
        return christoffel_symbols(
            self.metric_components,
            coords,
            self.inverse_metric_components(coords),
        )

    def symbolic(self) -> SymbolicMetric | None:
        """SymPy form of the metric, for inspection and cross-validation.

        Returns
        -------
        SymbolicMetric or None
            ``None`` when the chart has no symbolic form.  Minkowski,
            Schwarzschild and Eddington-Finkelstein provide one; Kerr-EF and
            the near-pole charts do not.
        """
        return None

    # tensor-valued interface ---------------------------------------------

    def point(self, coords: object) -> Point:
        """A point of this chart."""
        return Point(self, coords)

    def g(self, point: Point) -> Tensor:
        """Covariant metric tensor at *point* ('dd')."""
        return Tensor(point, self.metric_components(point.coords), "dd")

    def inv_g(self, point: Point) -> Tensor:
        """Inverse metric tensor at *point* ('uu')."""
        return Tensor(point, self.inverse_metric_components(point.coords), "uu")

    def christoffel(self, point: Point) -> Tensor:
        """Connection coefficients at *point* ('udd')."""
        return Tensor(point, self.christoffel_components(point.coords), "udd")
