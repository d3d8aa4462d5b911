"""Points and rank-generic tensors anchored in a chart, as Equinox modules.

Index convention: a string of ``'u'`` (upper / contravariant) and ``'d'``
(lower / covariant) characters, one per index.  E.g. ``'u'`` for a tangent
vector v^a, ``'dd'`` for g_{ab}, ``'udd'`` for Gamma^a_{bc}.

Components are stored as a dense ``(4,) * rank`` float64 array, so index
contraction is a single ``jnp.tensordot``.  All shape checks happen at
construction time; they are static (shape and signature metadata) and
therefore also hold under ``jax.jit``.

Operands of a contraction or linear operation must share chart and base
point.  The chart *type* and the index signature are checked; base-point
equality is the caller's responsibility.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, Float

if TYPE_CHECKING:
    from .chart import Chart
    from .conversion import ChartConversion

DIMENSION = 4


def _as_float_array(x: object) -> Float[Array, "..."]:
    return jnp.asarray(x, dtype=jnp.float64)


# ---------------------------------------------------------------------------
# Point
# ---------------------------------------------------------------------------


class Point(eqx.Module):
    """A spacetime point: four coordinates tagged with their chart.

    Parameters
    ----------
    chart : Chart
        The coordinate patch the coordinates belong to.
    coords : array-like
        Coordinates of shape (4,).
    """

    chart: Chart
    coords: Float[Array, "4"] = eqx.field(converter=_as_float_array)

    def __check_init__(self) -> None:
        if self.coords.shape != (DIMENSION,):
            raise ValueError(
                f"Point expects {DIMENSION} coordinates, got shape {self.coords.shape}"
            )

    def __getitem__(self, index):
        return self.coords[index]

    def shifted(self, delta: Float[Array, "4"]) -> Point:
        """Same chart, coordinates displaced by *delta*."""
        return Point(self.chart, self.coords + delta)


# ---------------------------------------------------------------------------
# Tensor
# ---------------------------------------------------------------------------


class Tensor(eqx.Module):
    """A tensor at a single point of a chart.

    Parameters
    ----------
    point : Point
        Base point (carries the chart).
    components : array-like
        Array of shape ``(4,) * rank``.
    index_positions : str
        One ``'u'`` or ``'d'`` per index.  ``''`` is a scalar.
    """

    point: Point
    components: Float[Array, "..."] = eqx.field(converter=_as_float_array)
    index_positions: str = eqx.field(static=True, default="u")

    def __check_init__(self) -> None:
        if set(self.index_positions) - {"u", "d"}:
            raise ValueError(
                f"index_positions must contain only 'u' and 'd', got "
                f"{self.index_positions!r}"
            )
        expected = (DIMENSION,) * len(self.index_positions)
        if self.components.shape != expected:
            raise ValueError(
                f"components shape {self.components.shape} does not match "
                f"index_positions {self.index_positions!r} (expected {expected})"
            )

    # constructors --------------------------------------------------------

    @classmethod
    def vector(cls, point: Point, components: object) -> Tensor:
        """Tangent vector v^a at *point*."""
        return cls(point, components, "u")

    @classmethod
    def covector(cls, point: Point, components: object) -> Tensor:
        """One-form w_a at *point*."""
        return cls(point, components, "d")

    @classmethod
    def zeros(cls, point: Point, index_positions: str = "u") -> Tensor:
        shape = (DIMENSION,) * len(index_positions)
        return cls(point, jnp.zeros(shape), index_positions)

    # derived properties --------------------------------------------------

    @property
    def rank(self) -> int:
        return len(self.index_positions)

    @property
    def chart(self) -> Chart:
        return self.point.chart

    def __getitem__(self, index):
        return self.components[index]

    def with_point(self, point: Point) -> Tensor:
        """Same components re-anchored at *point*."""
        return Tensor(point, self.components, self.index_positions)

    # linear operations ---------------------------------------------------

    def _check_compatible(self, other: Tensor) -> None:
        if self.index_positions != other.index_positions:
            raise ValueError(
                f"Index signature mismatch: {self.index_positions!r} vs "
                f"{other.index_positions!r}"
            )
        _check_same_chart(self, other)

    def __add__(self, other: Tensor) -> Tensor:
        self._check_compatible(other)
        return Tensor(self.point, self.components + other.components,
                      self.index_positions)

    def __sub__(self, other: Tensor) -> Tensor:
        self._check_compatible(other)
        return Tensor(self.point, self.components - other.components,
                      self.index_positions)

    def __neg__(self) -> Tensor:
        return Tensor(self.point, -self.components, self.index_positions)

    def __mul__(self, scalar: float) -> Tensor:
        return Tensor(self.point, self.components * scalar, self.index_positions)

    def __rmul__(self, scalar: float) -> Tensor:
        return Tensor(self.point, scalar * self.components, self.index_positions)

    def __truediv__(self, scalar: float) -> Tensor:
        return Tensor(self.point, self.components / scalar, self.index_positions)

    # chart transitions ---------------------------------------------------

    def convert(self, conversion: ChartConversion) -> Tensor:
        """Express this tensor in the conversion's target chart.

        Every contravariant index is pushed forward with the Jacobian
        dy^a/dx^i, every covariant index with the inverse Jacobian dx^i/dy^a.
        """
        jac = conversion.jacobian(self.point).components
        inv_jac = conversion.inv_jacobian(self.point).components
        comps = self.components
        for axis, position in enumerate(self.index_positions):
            if position == "u":
                moved = jnp.tensordot(jac, comps, axes=([1], [axis]))
            else:
                moved = jnp.tensordot(inv_jac, comps, axes=([0], [axis]))
            comps = jnp.moveaxis(moved, 0, axis)
        return Tensor(conversion.convert_point(self.point), comps,
                      self.index_positions)


def _check_same_chart(a: Tensor, b: Tensor) -> None:
    if type(a.chart) is not type(b.chart):
        raise ValueError(
            f"Tensors live in different charts: {a.chart.name()} vs {b.chart.name()}"
        )


# ---------------------------------------------------------------------------
# Contraction
# ---------------------------------------------------------------------------


def contract(a: Tensor, b: Tensor, i: int, j: int) -> Tensor | Float[Array, ""]:
    """Contract index *i* of *a* with index *j* of *b*.

    The result carries the remaining indices of *a* followed by the remaining
    indices of *b*.  When nothing is left the plain scalar is returned.

    Raises
    ------
    ValueError
        If the two indices have the same variance or the charts differ.
    """
    if a.index_positions[i] == b.index_positions[j]:
        raise ValueError(
            f"Cannot contract two {'upper' if a.index_positions[i] == 'u' else 'lower'} "
            f"indices ({a.index_positions!r}[{i}] with {b.index_positions!r}[{j}])"
        )
    _check_same_chart(a, b)

    comps = jnp.tensordot(a.components, b.components, axes=([i], [j]))
    positions = (
        a.index_positions[:i] + a.index_positions[i + 1:]
        + b.index_positions[:j] + b.index_positions[j + 1:]
    )
    if not positions:
        return comps
    return Tensor(a.point, comps, positions)


def inner(g: Tensor, u: Tensor, v: Tensor) -> Float[Array, ""]:
    """Metric inner product g_ab u^a v^b."""
    return contract(contract(g, u, 0, 0), v, 0, 0)
