"""Kerr black hole in ingoing Eddington-Finkelstein (Kerr) coordinates.

Coordinates (u, r, theta, phi), mass M, spin parameter a:

    ds^2 = (1 - 2Mr/rho^2) du^2 - 2 du dr + 2 z du dphi + 2 a sin^2 theta dr dphi
           - rho^2 dtheta^2 - (r^2 + a^2 + a z) sin^2 theta dphi^2

    rho^2 = r^2 + a^2 cos^2 theta,   z = 2 M r a sin^2 theta / rho^2,
    Delta = r^2 - 2Mr + a^2

Closed-form inverse metric; the Christoffel symbols come from exact autodiff
of the metric.  For a = 0 the chart reduces to
:class:`~worldline.charts.schwarzschild.EddingtonFinkelsteinChart`.

Domain: r > 0 away from the ring singularity, 0 < theta < pi.
"""

from __future__ import annotations

import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, Float, jaxtyped

from ..geometry.chart import Chart


class KerrEddingtonFinkelsteinChart(Chart):
    """Kerr metric in ingoing Eddington-Finkelstein coordinates.

    Parameters
    ----------
    M : float
        Mass parameter.
    a : float
        Spin parameter (angular momentum per unit mass).
    """

    M: float = 1.0
    a: float = 0.0

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        m, a = self.M, self.a
        sin2 = jnp.sin(th) ** 2
        rho2 = r * r + a * a * jnp.cos(th) ** 2
        z = 2.0 * m * r * a * sin2 / rho2

        g = jnp.zeros((4, 4))
        g = g.at[0, 0].set(1.0 - 2.0 * m * r / rho2)
        g = g.at[0, 1].set(-1.0)
        g = g.at[1, 0].set(-1.0)
        g = g.at[0, 3].set(z)
        g = g.at[3, 0].set(z)
        g = g.at[1, 3].set(a * sin2)
        g = g.at[3, 1].set(a * sin2)
        g = g.at[2, 2].set(-rho2)
        g = g.at[3, 3].set(-(r * r + a * a + a * z) * sin2)
        return g

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, th, _ = coords
        m, a = self.M, self.a
        sin2 = jnp.sin(th) ** 2
        rho2 = r * r + a * a * jnp.cos(th) ** 2
        delta = r * r - 2.0 * m * r + a * a

        g_inv = jnp.zeros((4, 4))
        g_inv = g_inv.at[0, 0].set(-a * a * sin2 / rho2)
        g_inv = g_inv.at[0, 1].set(-(r * r + a * a) / rho2)
        g_inv = g_inv.at[1, 0].set(-(r * r + a * a) / rho2)
        g_inv = g_inv.at[0, 3].set(-a / rho2)
        g_inv = g_inv.at[3, 0].set(-a / rho2)
        g_inv = g_inv.at[1, 1].set(-delta / rho2)
        g_inv = g_inv.at[1, 3].set(-a / rho2)
        g_inv = g_inv.at[3, 1].set(-a / rho2)
        g_inv = g_inv.at[2, 2].set(-1.0 / rho2)
        g_inv = g_inv.at[3, 3].set(-1.0 / (rho2 * sin2))
        return g_inv

    def name(self) -> str:
        return "KerrEddingtonFinkelstein"
