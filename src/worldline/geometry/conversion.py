"""Chart transitions and the registry of available conversions.

A ``ChartConversion`` maps points of a *source* chart to a *target* chart and
provides the two Jacobians needed to carry tensors across:

    jacobian(p)      J[a, i] = d y^a / d x^i   pushes contravariant indices
    inv_jacobian(p)  K[i, a] = d x^i / d y^a   carries covariant indices

where x are source and y target coordinates.  Both are returned as 'ud'
tensors anchored at the *converted* point.  At corresponding points J and K
are matrix inverses of each other.

By default J is obtained by forward-mode autodiff of ``map_coords`` and K by
a dense inverse; subclasses override either with closed forms.

Conversions are a flat capability table: ``ConversionRegistry`` maps a
(source chart type, target chart type) pair to the conversion class that
implements it.  The registry is a simple Python class (not an eqx.Module)
since it is metadata infrastructure, not traced by JAX.
"""
from __future__ import annotations

from abc import abstractmethod

import equinox as eqx
import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from .chart import Chart
from .types import Point, Tensor


# ---------------------------------------------------------------------------
# ChartConversion
# ---------------------------------------------------------------------------


class ChartConversion(eqx.Module):
    """Abstract transition map from ``source`` to ``target``.

    Parameters
    ----------
    source : Chart
        Chart the input points live in.
    target : Chart
        Chart the output points live in.
    """

    source: Chart
    target: Chart

    @abstractmethod
    def map_coords(self, coords: Float[Array, "4"]) -> Float[Array, "4"]:
        """Pure coordinate reprojection source -> target."""
        ...

    def jacobian_components(self, coords: Float[Array, "4"]) -> Float[Array, "4 4"]:
        """J[a, i] = d y^a / d x^i at source coordinates *coords*."""
        return jax.jacfwd(self.map_coords)(coords)

    def inv_jacobian_components(
        self, coords: Float[Array, "4"]
    ) -> Float[Array, "4 4"]:
        """K[i, a] = d x^i / d y^a at source coordinates *coords*."""
        return jnp.linalg.inv(self.jacobian_components(coords))

    # point / tensor interface --------------------------------------------

    def convert_point(self, point: Point) -> Point:
        return Point(self.target, self.map_coords(point.coords))

    def jacobian(self, point: Point) -> Tensor:
        return Tensor(self.convert_point(point),
                      self.jacobian_components(point.coords), "ud")

    def inv_jacobian(self, point: Point) -> Tensor:
        return Tensor(self.convert_point(point),
                      self.inv_jacobian_components(point.coords), "ud")


# ---------------------------------------------------------------------------
# ConversionRegistry
# ---------------------------------------------------------------------------


class ConversionRegistry:
    """Registry of chart transitions keyed by (source type, target type).

    Usage::

        registry = create_default_registry()
        to_ef = registry.get(schwarzschild, eddington)
        photon_ef = photon.convert(to_ef)
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[type, type], type[ChartConversion]] = {}

    def register(
        self,
        source_type: type[Chart],
        target_type: type[Chart],
        conversion_type: type[ChartConversion],
    ) -> None:
        """Register *conversion_type* as the transition source -> target."""
        self._entries[(source_type, target_type)] = conversion_type

    def get(self, source: Chart, target: Chart) -> ChartConversion:
        """Instantiate the conversion between two chart instances.

        Raises
        ------
        KeyError
            If no conversion is registered for the pair.
        """
        key = (type(source), type(target))
        if key not in self._entries:
            raise KeyError(
                f"No conversion {type(source).__name__} -> "
                f"{type(target).__name__} registered.  "
                f"Available: {self.pairs()}"
            )
        return self._entries[key](source=source, target=target)

    def pairs(self) -> list[tuple[str, str]]:
        """Sorted list of registered (source, target) chart type names."""
        return sorted((s.__name__, t.__name__) for s, t in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: tuple[type, type]) -> bool:
        return pair in self._entries
