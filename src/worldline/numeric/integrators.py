"""One-step ODE integrators over an abstract state.

The integrators are generic: they only need a *state* that can be shifted
along a ``StateVector`` direction and a derivative function mapping a state
to a ``StateVector``.  They know nothing about charts or tensors.

``DPIntegrator`` is the Dormand-Prince 5(4) embedded Runge-Kutta pair with
adaptive step control and the first-same-as-last (FSAL) optimisation:
the derivative at the accepted 5th-order solution is cached and reused as
the first stage of the next call.

Limitations
-----------
* Steps are never rejected.  The error estimate only sets the size of the
  *next* step, so when the estimate stays above ``max_err`` even at
  ``min_step`` the step is taken anyway and accuracy degrades silently.
* The error norm is the unweighted Euclidean norm of the whole state, mixing
  position and velocity/frame components.
* The cached derivative belongs to the state returned by the previous call.
  Call :meth:`DPIntegrator.reset` whenever the driven state changes by any
  other means (new worldline, chart switch, applied force changes).

References
----------
Dormand, J. R.; Prince, P. J. (1980). "A family of embedded Runge-Kutta
formulae".  J. Comp. Appl. Math. 6 (1): 19-26.
"""
from __future__ import annotations

import logging
from typing import Callable, Protocol, TypeVar

import jax.numpy as jnp

from .state_vector import StateVector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State protocol
# ---------------------------------------------------------------------------


class State(Protocol):
    """Anything the integrators can advance."""

    def shifted(self, direction: StateVector, amount: float) -> "State":
        """Return a new state displaced by ``amount * direction``."""
        ...


class MutableState(State, Protocol):
    """A state that can also be advanced in place."""

    def shift_in_place(self, direction: StateVector, amount: float) -> None:
        ...


S = TypeVar("S", bound=State)
DerivativeFn = Callable[[S], StateVector]


# ---------------------------------------------------------------------------
# Dormand-Prince 5(4) tableau
# ---------------------------------------------------------------------------

# Nodes c_i (informational; the equations are autonomous).
DP_C = (0.0, 1.0 / 5.0, 3.0 / 10.0, 4.0 / 5.0, 8.0 / 9.0, 1.0)

# Stage coefficients a_ij for stages 2..6 (stage 1 is the start state).
DP_A = (
    (1.0 / 5.0,),
    (3.0 / 40.0, 9.0 / 40.0),
    (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0),
    (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0),
    (9017.0 / 3168.0, -355.0 / 33.0, 46732.0 / 5247.0, 49.0 / 176.0,
     -5103.0 / 18656.0),
)

# 5th-order weights (k2 does not contribute).
DP_B = (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0,
        -2187.0 / 6784.0, 11.0 / 84.0)

# Error weights b_i - b*_i for k1..k7.
DP_E = (71.0 / 57600.0, 0.0, -71.0 / 16695.0, 71.0 / 1920.0,
        -17253.0 / 339200.0, 22.0 / 525.0, -1.0 / 40.0)


def _linear_combination(
    coeffs: tuple[float, ...], vectors: list[StateVector]
) -> StateVector:
    """sum_i coeffs[i] * vectors[i] as a single contraction."""
    weights = jnp.asarray(coeffs[: len(vectors)], dtype=jnp.float64)
    stacked = jnp.stack([v.components for v in vectors])
    return StateVector(jnp.tensordot(weights, stacked, axes=1))


# ---------------------------------------------------------------------------
# DPIntegrator
# ---------------------------------------------------------------------------


class DPIntegrator:
    """Adaptive Dormand-Prince 5(4) integrator with FSAL caching.

    The integrator is a small state machine: it starts *configured* (no
    cached derivative), becomes *armed* after the first ``propagate`` call
    (the derivative at the returned state is cached), and returns to
    *configured* on :meth:`reset`.

    Parameters
    ----------
    default_step : float
        Initial step length, used when no explicit step is requested.
    min_step, max_step : float
        Bounds the adaptive step is clamped into.
    max_err : float
        Target local error per step (norm of the embedded error estimate).

    Raises
    ------
    ValueError
        If the step bounds are not ``0 < min_step <= max_step`` or
        ``max_err`` is not positive.
    """

    def __init__(
        self,
        default_step: float,
        min_step: float,
        max_step: float,
        max_err: float,
    ) -> None:
        if not 0.0 < min_step <= max_step:
            raise ValueError(
                f"Expected 0 < min_step <= max_step, got min_step={min_step}, "
                f"max_step={max_step}"
            )
        if max_err <= 0.0:
            raise ValueError(f"max_err must be positive, got {max_err}")
        self._default_step = float(default_step)
        self._original_default_step = float(default_step)
        self.min_step = float(min_step)
        self.max_step = float(max_step)
        self.max_err = float(max_err)
        self._last_derivative: StateVector | None = None
        self._last_error: float | None = None

    # read-only views -----------------------------------------------------

    @property
    def default_step(self) -> float:
        """Current adaptive step estimate."""
        return self._default_step

    @property
    def last_derivative(self) -> StateVector | None:
        """Cached derivative at the last returned state (None when not armed)."""
        return self._last_derivative

    @property
    def last_error(self) -> float | None:
        """Embedded error estimate of the last step."""
        return self._last_error

    @property
    def armed(self) -> bool:
        return self._last_derivative is not None

    # lifecycle -----------------------------------------------------------

    def reset_default_step(self) -> None:
        self._default_step = self._original_default_step

    def reset(self) -> None:
        """Drop the cached derivative and restore the original default step."""
        self._last_derivative = None
        self._last_error = None
        self.reset_default_step()

    # stepping ------------------------------------------------------------

    def _step_length(self, step: float | None) -> float:
        return self._default_step if step is None else float(step)

    def _increments(
        self, start: S, derivative_fn: DerivativeFn, h: float
    ) -> tuple[list[StateVector], StateVector]:
        """Stages k1..k6 (already scaled by h) and the 5th-order increment."""
        if self._last_derivative is not None:
            k1 = self._last_derivative * h
        else:
            k1 = derivative_fn(start) * h

        ks = [k1]
        for row in DP_A:
            stage_state = start.shifted(_linear_combination(row, ks), 1.0)
            ks.append(derivative_fn(stage_state) * h)

        return ks, _linear_combination(DP_B, ks)

    def _finish(self, ks: list[StateVector], k7: StateVector, h: float) -> None:
        """Error estimate, step adaptation and FSAL caching."""
        error = float(_linear_combination(DP_E, [*ks, k7 * h]).norm())

        if error != 0.0:
            new_step = h * (self.max_err / error) ** 0.25
        else:
            new_step = self.max_step

        if new_step < self.min_step:
            if error > self.max_err:
                logger.debug(
                    "Step floor reached: error %.3e exceeds tolerance %.3e at "
                    "min_step %.3e",
                    error, self.max_err, self.min_step,
                )
            new_step = self.min_step
        if new_step > self.max_step:
            new_step = self.max_step

        logger.debug("DP step h=%.6e error=%.3e next=%.6e", h, error, new_step)

        self._default_step = new_step
        self._last_error = error
        self._last_derivative = k7

    def propagate(
        self,
        start: S,
        derivative_fn: DerivativeFn,
        step: float | None = None,
    ) -> S:
        """Advance ``start`` by one step and return the new state.

        Parameters
        ----------
        start : State
            State to advance (not modified).
        derivative_fn : callable
            Maps a state to its ``StateVector`` derivative.
        step : float or None
            Fixed step length, or None to use the adaptive default step.

        Returns
        -------
        State
            The 5th-order solution after one step.
        """
        h = self._step_length(step)
        ks, increment = self._increments(start, derivative_fn, h)
        next_state = start.shifted(increment, 1.0)
        k7 = derivative_fn(next_state)
        self._finish(ks, k7, h)
        return next_state

    def propagate_in_place(
        self,
        state: MutableState,
        derivative_fn: DerivativeFn,
        step: float | None = None,
    ) -> None:
        """Advance a mutable state (``Particle``, ``Entity``) by one step."""
        h = self._step_length(step)
        ks, increment = self._increments(state, derivative_fn, h)
        state.shift_in_place(increment, 1.0)
        k7 = derivative_fn(state)
        self._finish(ks, k7, h)


# ---------------------------------------------------------------------------
# RK4Integrator
# ---------------------------------------------------------------------------


class RK4Integrator:
    """Classic fixed-step fourth-order Runge-Kutta over the same state protocol."""

    def __init__(self, step: float) -> None:
        self.default_step = float(step)

    def set_default_step(self, step: float) -> None:
        self.default_step = float(step)

    def _increment(self, start: S, derivative_fn: DerivativeFn, h: float) -> StateVector:
        k1 = derivative_fn(start)
        k2 = derivative_fn(start.shifted(k1, h / 2.0))
        k3 = derivative_fn(start.shifted(k2, h / 2.0))
        k4 = derivative_fn(start.shifted(k3, h))
        return (k1 + k2 * 2.0 + k3 * 2.0 + k4) * (h / 6.0)

    def propagate(
        self,
        start: S,
        derivative_fn: DerivativeFn,
        step: float | None = None,
    ) -> S:
        h = self.default_step if step is None else float(step)
        return start.shifted(self._increment(start, derivative_fn, h), 1.0)

    def propagate_in_place(
        self,
        state: MutableState,
        derivative_fn: DerivativeFn,
        step: float | None = None,
    ) -> None:
        h = self.default_step if step is None else float(step)
        state.shift_in_place(self._increment(state, derivative_fn, h), 1.0)
