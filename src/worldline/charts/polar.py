"""Stereographic near-pole charts and their transitions to spherical charts.

Spherical charts are singular on the polar axis (sin theta = 0).  Near a pole
the angular pair (theta, phi) is replaced by stereographic coordinates

    north (theta = 0):   x = tan(theta/2) cos phi,       y = tan(theta/2) sin phi
    south (theta = pi):  x = tan((pi-theta)/2) cos phi,  y = tan((pi-theta)/2) sin phi

in which the unit sphere reads

    dtheta^2 + sin^2 theta dphi^2 = alpha^2 (dx^2 + dy^2),  alpha^2 = 4 / (1 + x^2 + y^2)^2

so the metric is regular on the axis.  The first two coordinates (t or u,
and r) are left untouched.  The metric is the same for both poles; only the
transition maps differ.

Christoffel symbols of the near-pole charts come from exact autodiff of the
metric.  The transition maps themselves are singular exactly on the axis
(phi is undefined there): switch charts before reaching it.
"""

from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, Float, jaxtyped

from ..geometry.chart import Chart
from ..geometry.conversion import ChartConversion

_POLES = ("north", "south")


def _alpha2(x: Float[Array, ""], y: Float[Array, ""]) -> Float[Array, ""]:
    xy1 = 1.0 + x * x + y * y
    return 4.0 / (xy1 * xy1)


# ---------------------------------------------------------------------------
# Near-pole charts
# ---------------------------------------------------------------------------


class NearPoleChart(Chart):
    """Base for stereographic patches around one pole.

    Parameters
    ----------
    pole : str
        ``"north"`` (theta = 0) or ``"south"`` (theta = pi).  Static field.

    Raises
    ------
    ValueError
        If *pole* is not one of the two names.
    """

    pole: str = eqx.field(static=True, default="north")

    def __check_init__(self) -> None:
        if self.pole not in _POLES:
            raise ValueError(f"pole must be one of {_POLES}, got {self.pole!r}")

    @property
    def pole_sign(self) -> float:
        """+1 for the north patch, -1 for the south patch (d theta / d(2h))."""
        return 1.0 if self.pole == "north" else -1.0

    def _patch_name(self, base: str) -> str:
        return f"{base}NearPole{self.pole.capitalize()}"


class NearPoleSchwarzschildChart(NearPoleChart):
    """Schwarzschild metric, coordinates (t, r, x, y).

    Parameters
    ----------
    M : float
        Mass parameter.
    """

    M: float = 1.0

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        f = 1.0 - 2.0 * self.M / r
        ang = -_alpha2(x, y) * r * r
        return jnp.diag(jnp.stack([f, -1.0 / f, ang, ang]))

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        f = 1.0 - 2.0 * self.M / r
        ang = -1.0 / (_alpha2(x, y) * r * r)
        return jnp.diag(jnp.stack([1.0 / f, -f, ang, ang]))

    def name(self) -> str:
        return self._patch_name("Schwarzschild")


class NearPoleEddingtonFinkelsteinChart(NearPoleChart):
    """Schwarzschild metric, ingoing Eddington-Finkelstein, coordinates (u, r, x, y).

    Parameters
    ----------
    M : float
        Mass parameter.
    """

    M: float = 1.0

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        f = 1.0 - 2.0 * self.M / r
        ang = -_alpha2(x, y) * r * r
        g = jnp.zeros((4, 4))
        g = g.at[0, 0].set(f)
        g = g.at[0, 1].set(-1.0)
        g = g.at[1, 0].set(-1.0)
        g = g.at[2, 2].set(ang)
        g = g.at[3, 3].set(ang)
        return g

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        f = 1.0 - 2.0 * self.M / r
        ang = -1.0 / (_alpha2(x, y) * r * r)
        g_inv = jnp.zeros((4, 4))
        g_inv = g_inv.at[0, 1].set(-1.0)
        g_inv = g_inv.at[1, 0].set(-1.0)
        g_inv = g_inv.at[1, 1].set(-f)
        g_inv = g_inv.at[2, 2].set(ang)
        g_inv = g_inv.at[3, 3].set(ang)
        return g_inv

    def name(self) -> str:
        return self._patch_name("EddingtonFinkelstein")


class NearPoleKerrChart(NearPoleChart):
    """Kerr metric, ingoing Eddington-Finkelstein, coordinates (u, r, x, y).

    With sin^2 theta = alpha^2 (x^2 + y^2) and sin^2 theta dphi = alpha^2 (x dy - y dx)
    the Kerr cross terms become linear in (x, y) and the chart is regular
    on the rotation axis.

    Parameters
    ----------
    M : float
        Mass parameter.
    a : float
        Spin parameter.
    """

    M: float = 1.0
    a: float = 0.0

    def _rho2(self, r, x, y):
        xy1 = 1.0 + x * x + y * y
        cos_th = (1.0 - x * x - y * y) / xy1
        return r * r + self.a * self.a * cos_th * cos_th

    @jaxtyped(typechecker=beartype)
    def metric_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        m, a = self.M, self.a
        alpha2 = _alpha2(x, y)
        rho2 = self._rho2(r, x, y)
        frame_drag = 2.0 * m * r * a * alpha2 / rho2
        k = a * a * alpha2 * alpha2 * (1.0 + 2.0 * m * r / rho2)

        g = jnp.zeros((4, 4))
        g = g.at[0, 0].set(1.0 - 2.0 * m * r / rho2)
        g = g.at[0, 1].set(-1.0)
        g = g.at[1, 0].set(-1.0)
        g = g.at[0, 2].set(-frame_drag * y)
        g = g.at[2, 0].set(-frame_drag * y)
        g = g.at[0, 3].set(frame_drag * x)
        g = g.at[3, 0].set(frame_drag * x)
        g = g.at[1, 2].set(-a * alpha2 * y)
        g = g.at[2, 1].set(-a * alpha2 * y)
        g = g.at[1, 3].set(a * alpha2 * x)
        g = g.at[3, 1].set(a * alpha2 * x)
        g = g.at[2, 2].set(-alpha2 * rho2 - k * y * y)
        g = g.at[3, 3].set(-alpha2 * rho2 - k * x * x)
        g = g.at[2, 3].set(k * x * y)
        g = g.at[3, 2].set(k * x * y)
        return g

    @jaxtyped(typechecker=beartype)
    def inverse_metric_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        _, r, x, y = coords
        m, a = self.M, self.a
        alpha2 = _alpha2(x, y)
        rho2 = self._rho2(r, x, y)
        delta = r * r - 2.0 * m * r + a * a

        g_inv = jnp.zeros((4, 4))
        g_inv = g_inv.at[0, 0].set(-a * a * alpha2 * (x * x + y * y) / rho2)
        g_inv = g_inv.at[0, 1].set(-(r * r + a * a) / rho2)
        g_inv = g_inv.at[1, 0].set(-(r * r + a * a) / rho2)
        g_inv = g_inv.at[1, 1].set(-delta / rho2)
        g_inv = g_inv.at[0, 2].set(a * y / rho2)
        g_inv = g_inv.at[2, 0].set(a * y / rho2)
        g_inv = g_inv.at[0, 3].set(-a * x / rho2)
        g_inv = g_inv.at[3, 0].set(-a * x / rho2)
        g_inv = g_inv.at[1, 2].set(a * y / rho2)
        g_inv = g_inv.at[2, 1].set(a * y / rho2)
        g_inv = g_inv.at[1, 3].set(-a * x / rho2)
        g_inv = g_inv.at[3, 1].set(-a * x / rho2)
        g_inv = g_inv.at[2, 2].set(-1.0 / (alpha2 * rho2))
        g_inv = g_inv.at[3, 3].set(-1.0 / (alpha2 * rho2))
        return g_inv

    def name(self) -> str:
        return self._patch_name("KerrEddingtonFinkelstein")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _embed_angular(block: Float[Array, "2 2"]) -> Float[Array, "4 4"]:
    return jnp.eye(4).at[2:, 2:].set(block)


def _stereo_wrt_angles(theta, phi, sign: float) -> Float[Array, "2 2"]:
    """d(x, y) / d(theta, phi) at spherical angles."""
    half = theta / 2.0 if sign > 0 else (jnp.pi - theta) / 2.0
    tan_h = jnp.tan(half)
    sec2_h = 1.0 + tan_h * tan_h
    cos_ph, sin_ph = jnp.cos(phi), jnp.sin(phi)
    return jnp.array([
        [0.5 * sign * sec2_h * cos_ph, -tan_h * sin_ph],
        [0.5 * sign * sec2_h * sin_ph, tan_h * cos_ph],
    ])


def _angles_wrt_stereo(x, y, sign: float) -> Float[Array, "2 2"]:
    """d(theta, phi) / d(x, y) at stereographic coordinates."""
    rho2 = x * x + y * y
    rho = jnp.sqrt(rho2)
    coeff = 2.0 * sign / ((1.0 + rho2) * rho)
    return jnp.array([
        [x * coeff, y * coeff],
        [-y / rho2, x / rho2],
    ])


def _angles_from_stereo(x, y, sign: float):
    half = jnp.arctan(jnp.sqrt(x * x + y * y))
    theta = 2.0 * half if sign > 0 else jnp.pi - 2.0 * half
    return theta, jnp.arctan2(y, x)


class SphericalToNearPole(ChartConversion):
    """(., ., theta, phi) -> (., ., x, y) for the target's pole."""

    def map_coords(self, coords: Float[Array, "4"]) -> Float[Array, "4"]:
        theta, phi = coords[2], coords[3]
        half = theta / 2.0 if self.target.pole_sign > 0 else (jnp.pi - theta) / 2.0
        tan_h = jnp.tan(half)
        return coords.at[2].set(tan_h * jnp.cos(phi)).at[3].set(tan_h * jnp.sin(phi))

    def jacobian_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return _embed_angular(
            _stereo_wrt_angles(coords[2], coords[3], self.target.pole_sign)
        )

    def inv_jacobian_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        mapped = self.map_coords(coords)
        return _embed_angular(
            _angles_wrt_stereo(mapped[2], mapped[3], self.target.pole_sign)
        )


class NearPoleToSpherical(ChartConversion):
    """(., ., x, y) -> (., ., theta, phi) for the source's pole."""

    def map_coords(self, coords: Float[Array, "4"]) -> Float[Array, "4"]:
        theta, phi = _angles_from_stereo(coords[2], coords[3], self.source.pole_sign)
        return coords.at[2].set(theta).at[3].set(phi)

    def jacobian_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        return _embed_angular(
            _angles_wrt_stereo(coords[2], coords[3], self.source.pole_sign)
        )

    def inv_jacobian_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        x, y = coords[2], coords[3]
        sign = self.source.pole_sign
        rho2 = x * x + y * y
        rho = jnp.sqrt(rho2)
        half_coeff = 0.5 * sign * (1.0 + rho2) / rho
        block = jnp.array([
            [x * half_coeff, -y],
            [y * half_coeff, x],
        ])
        return _embed_angular(block)
