"""Flat state vectors: the algebraic substrate of the integrators.

A ``StateVector`` knows nothing about geometry.  It is a fixed-length float64
array with the vector-space operations a Runge-Kutta scheme needs:
componentwise sums and differences, scaling, and a norm for error control.

Layout convention for physical states (D = 4):
    Particle: [x^mu, v^mu]                      length 2 * D
    Entity:   [x^mu, u^mu, e1^mu, e2^mu, e3^mu] length 5 * D
"""
from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, Float


def _as_float_array(x: object) -> Float[Array, "..."]:
    return jnp.asarray(x, dtype=jnp.float64)


class StateVector(eqx.Module):
    """Immutable flat numeric vector with vector-space operations.

    Parameters
    ----------
    components : array-like
        One-dimensional array of length N (converted to float64).
    """

    components: Float[Array, "n"] = eqx.field(converter=_as_float_array)

    def __check_init__(self) -> None:
        if self.components.ndim != 1:
            raise ValueError(
                f"StateVector expects a 1-D array, got shape {self.components.shape}"
            )

    # arithmetic ----------------------------------------------------------

    def _check_same_length(self, other: StateVector) -> None:
        if len(self) != len(other):
            raise ValueError(
                f"StateVector length mismatch: {len(self)} != {len(other)}"
            )

    def __add__(self, other: StateVector) -> StateVector:
        self._check_same_length(other)
        return StateVector(self.components + other.components)

    def __sub__(self, other: StateVector) -> StateVector:
        self._check_same_length(other)
        return StateVector(self.components - other.components)

    def __neg__(self) -> StateVector:
        return StateVector(-self.components)

    def __mul__(self, scalar: float) -> StateVector:
        return StateVector(self.components * scalar)

    def __rmul__(self, scalar: float) -> StateVector:
        return StateVector(scalar * self.components)

    def __truediv__(self, scalar: float) -> StateVector:
        return StateVector(self.components / scalar)

    # container -----------------------------------------------------------

    def __len__(self) -> int:
        return self.components.shape[0]

    def __getitem__(self, index):
        return self.components[index]

    # numeric helpers -----------------------------------------------------

    def norm(self) -> Float[Array, ""]:
        """Euclidean norm over all components.

        Position and velocity/frame components are mixed without weighting;
        in geometric units they are treated as commensurable.
        """
        return jnp.sqrt(jnp.sum(self.components * self.components))

    def shifted(self, direction: StateVector, amount: float) -> StateVector:
        """Return ``self + direction * amount`` (the integrator state protocol)."""
        return self + direction * amount

    @classmethod
    def zeros(cls, n: int) -> StateVector:
        return cls(jnp.zeros(n))
