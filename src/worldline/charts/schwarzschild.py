"""Schwarzschild black hole in Schwarzschild and ingoing Eddington-Finkelstein charts.

Schwarzschild coordinates (t, r, theta, phi):
    ds^2 = f dt^2 - dr^2 / f - r^2 (dtheta^2 + sin^2 theta dphi^2),
    f = 1 - 2M/r

Ingoing Eddington-Finkelstein coordinates (u, r, theta, phi), with the
advanced time u = t + r + 2M ln((r - 2M) / 2M):
    ds^2 = f du^2 - 2 du dr - r^2 (dtheta^2 + sin^2 theta dphi^2)

Domains:
- Schwarzschild: r > 2M, 0 < theta < pi (horizon and polar axis singular)
- Eddington-Finkelstein: r > 0, 0 < theta < pi (regular across the horizon)

Both charts carry closed-form inverse metrics and Christoffel symbols.
"""

from __future__ import annotations

import jax.numpy as jnp
import sympy as sp
from beartype import beartype
from jaxtyping import Array, Float, jaxtyped

from ..geometry.chart import Chart, SymbolicMetric
from ..geometry.conversion import ChartConversion


def tortoise_shift(r: Float[Array, "..."], M: float) -> Float[Array, "..."]:
    """r + 2M ln((r - 2M) / 2M): the offset between advanced time u and t."""
    return r + 2.0 * M * jnp.log(0.5 * (r - 2.0 * M) / M)


# ---------------------------------------------------------------------------
# Schwarzschild chart
# ---------------------------------------------------------------------------


class SchwarzschildChart(Chart):
    """Schwarzschild metric in Schwarzschild coordinates.

    Parameters
    ----------
    M : float
        Mass parameter.
    """

    M: float = 1.0

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        f = 1.0 - 2.0 * self.M / r
        sin_th = jnp.sin(th)
        return jnp.diag(jnp.stack([f, -1.0 / f, -r * r, -r * r * sin_th * sin_th]))

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        f = 1.0 - 2.0 * self.M / r
        sin_th = jnp.sin(th)
        return jnp.diag(
            jnp.stack([1.0 / f, -f, -1.0 / (r * r), -1.0 / (r * r * sin_th * sin_th)])
        )

    @jaxtyped(typechecker=beartype)
    def christoffel_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4 4"]:
        _, r, th, _ = coords
        m = self.M
        mr = m / r
        r2m = r - 2.0 * m
        sin_th, cos_th = jnp.sin(th), jnp.cos(th)
        cot_th = cos_th / sin_th

        gamma = jnp.zeros((4, 4, 4))
        # Gamma^t
        gamma = gamma.at[0, 0, 1].set(mr / r2m)
        gamma = gamma.at[0, 1, 0].set(mr / r2m)
        # Gamma^r
        gamma = gamma.at[1, 0, 0].set(mr * r2m / (r * r))
        gamma = gamma.at[1, 1, 1].set(-mr / r2m)
        gamma = gamma.at[1, 2, 2].set(-r2m)
        gamma = gamma.at[1, 3, 3].set(-r2m * sin_th * sin_th)
        # Gamma^theta
        gamma = gamma.at[2, 1, 2].set(1.0 / r)
        gamma = gamma.at[2, 2, 1].set(1.0 / r)
        gamma = gamma.at[2, 3, 3].set(-sin_th * cos_th)
        # Gamma^phi
        gamma = gamma.at[3, 1, 3].set(1.0 / r)
        gamma = gamma.at[3, 3, 1].set(1.0 / r)
        gamma = gamma.at[3, 2, 3].set(cot_th)
        gamma = gamma.at[3, 3, 2].set(cot_th)
        return gamma

    def symbolic(self) -> SymbolicMetric:
        """Return SymPy symbolic form for inspection and cross-validation."""
        return schwarzschild_symbolic(sp.Float(self.M))

    def name(self) -> str:
        return "Schwarzschild"


def schwarzschild_symbolic(M: sp.Expr | None = None) -> SymbolicMetric:
    """Symbolic Schwarzschild metric in Schwarzschild coordinates.

    Parameters
    ----------
    M : sp.Expr or None
        Mass symbol or value.  If *None*, creates ``Symbol('M', positive=True)``.
    """
    t, r, th, ph = sp.symbols("t r theta phi")
    if M is None:
        M = sp.Symbol("M", positive=True)
    f = 1 - 2 * M / r
    g = sp.diag(f, -1 / f, -r**2, -r**2 * sp.sin(th) ** 2)
    return SymbolicMetric([t, r, th, ph], g)


# ---------------------------------------------------------------------------
# Ingoing Eddington-Finkelstein chart
# ---------------------------------------------------------------------------


class EddingtonFinkelsteinChart(Chart):
    """Schwarzschild metric in ingoing Eddington-Finkelstein coordinates.

    Parameters
    ----------
    M : float
        Mass parameter.
    """

    M: float = 1.0

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        f = 1.0 - 2.0 * self.M / r
        sin_th = jnp.sin(th)
        g = jnp.zeros((4, 4))
        g = g.at[0, 0].set(f)
        g = g.at[0, 1].set(-1.0)
        g = g.at[1, 0].set(-1.0)
        g = g.at[2, 2].set(-r * r)
        g = g.at[3, 3].set(-r * r * sin_th * sin_th)
        return g

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        f = 1.0 - 2.0 * self.M / r
        sin_th = jnp.sin(th)
        g_inv = jnp.zeros((4, 4))
        g_inv = g_inv.at[0, 1].set(-1.0)
        g_inv = g_inv.at[1, 0].set(-1.0)
        g_inv = g_inv.at[1, 1].set(-f)
        g_inv = g_inv.at[2, 2].set(-1.0 / (r * r))
        g_inv = g_inv.at[3, 3].set(-1.0 / (r * r * sin_th * sin_th))
        return g_inv

    @jaxtyped(typechecker=beartype)
    def christoffel_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4 4"]:
        _, r, th, _ = coords
        m = self.M
        mr = m / r
        r2m = r - 2.0 * m
        sin_th, cos_th = jnp.sin(th), jnp.cos(th)
        cot_th = cos_th / sin_th

        gamma = jnp.zeros((4, 4, 4))
        # Gamma^u
        gamma = gamma.at[0, 0, 0].set(mr / r)
        gamma = gamma.at[0, 2, 2].set(-r)
        gamma = gamma.at[0, 3, 3].set(-r * sin_th * sin_th)
        # Gamma^r
        gamma = gamma.at[1, 0, 0].set(m * r2m / (r * r * r))
        gamma = gamma.at[1, 0, 1].set(-mr / r)
        gamma = gamma.at[1, 1, 0].set(-mr / r)
        gamma = gamma.at[1, 2, 2].set(-r2m)
        gamma = gamma.at[1, 3, 3].set(-r2m * sin_th * sin_th)
        # Gamma^theta
        gamma = gamma.at[2, 1, 2].set(1.0 / r)
        gamma = gamma.at[2, 2, 1].set(1.0 / r)
        gamma = gamma.at[2, 3, 3].set(-sin_th * cos_th)
        # Gamma^phi
        gamma = gamma.at[3, 1, 3].set(1.0 / r)
        gamma = gamma.at[3, 3, 1].set(1.0 / r)
        gamma = gamma.at[3, 2, 3].set(cot_th)
        gamma = gamma.at[3, 3, 2].set(cot_th)
        return gamma

    def symbolic(self) -> SymbolicMetric:
        """Return SymPy symbolic form for inspection and cross-validation."""
        return eddington_finkelstein_symbolic(sp.Float(self.M))

    def name(self) -> str:
        return "EddingtonFinkelstein"


def eddington_finkelstein_symbolic(M: sp.Expr | None = None) -> SymbolicMetric:
    """Symbolic Schwarzschild metric in ingoing Eddington-Finkelstein coordinates."""
    u, r, th, ph = sp.symbols("u r theta phi")
    if M is None:
        M = sp.Symbol("M", positive=True)
    f = 1 - 2 * M / r
    g = sp.Matrix([
        [f, -1, 0, 0],
        [-1, 0, 0, 0],
        [0, 0, -r**2, 0],
        [0, 0, 0, -r**2 * sp.sin(th) ** 2],
    ])
    return SymbolicMetric([u, r, th, ph], g)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def _advanced_time_jacobian(r: Float[Array, ""], M: float, sign: float) -> Float[Array, "4 4"]:
    """Identity plus du/dr = sign * r / (r - 2M) in the (0, 1) slot."""
    return jnp.eye(4).at[0, 1].set(sign * r / (r - 2.0 * M))


class SchwarzschildToEddingtonFinkelstein(ChartConversion):
    """(t, r, theta, phi) -> (u, r, theta, phi) with u = t + r + 2M ln((r-2M)/2M)."""

    def map_coords(self, coords: Float[Array, "4"]) -> Float[Array, "4"]:
        t, r = coords[0], coords[1]
        return coords.at[0].set(t + tortoise_shift(r, self.source.M))

    def jacobian_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return _advanced_time_jacobian(coords[1], self.source.M, 1.0)

    def inv_jacobian_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        return _advanced_time_jacobian(coords[1], self.source.M, -1.0)


class EddingtonFinkelsteinToSchwarzschild(ChartConversion):
    """(u, r, theta, phi) -> (t, r, theta, phi) with t = u - r - 2M ln((r-2M)/2M)."""

    def map_coords(self, coords: Float[Array, "4"]) -> Float[Array, "4"]:
        u, r = coords[0], coords[1]
        return coords.at[0].set(u - tortoise_shift(r, self.source.M))

    def jacobian_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return _advanced_time_jacobian(coords[1], self.source.M, -1.0)

    def inv_jacobian_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        return _advanced_time_jacobian(coords[1], self.source.M, 1.0)
