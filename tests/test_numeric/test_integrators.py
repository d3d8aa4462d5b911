"""Dormand-Prince 5(4) and RK4 integrators on plain StateVector problems.

The harmonic oscillator [t, x, p] with x' = p, p' = -x has the exact
solution x = cos t, p = -sin t from (0, 1, 0).  Carrying t in the state
lets the final step land exactly on the period.
"""
import logging
import math

import jax.numpy as jnp
import numpy as np
import pytest

from worldline.numeric import DP_A, DP_B, DP_E, DPIntegrator, RK4Integrator, StateVector


def oscillator(state: StateVector) -> StateVector:
    _, x, p = state.components
    return StateVector(jnp.stack([jnp.asarray(1.0), p, -x]))


class CountingDerivative:
    """Wraps a derivative function and counts evaluations."""

    def __init__(self, fn):
        self.fn = fn
        self.calls = 0

    def __call__(self, state):
        self.calls += 1
        return self.fn(state)


def integrate_to(integrator, state, derivative_fn, t_end):
    n_steps = 0
    while float(state[0]) < t_end:
        step = min(integrator.default_step, t_end - float(state[0]))
        state = integrator.propagate(state, derivative_fn, step)
        n_steps += 1
    return state, n_steps


# ===========================================================================
# Tableau and configuration
# ===========================================================================


class TestTableau:
    """Butcher tableau consistency."""

    def test_weights_sum_to_one(self):
        assert math.isclose(sum(DP_B), 1.0, abs_tol=1e-15)

    def test_error_weights_sum_to_zero(self):
        """Both embedded solutions are consistent, so b - b* sums to zero."""
        assert math.isclose(sum(DP_E), 0.0, abs_tol=1e-15)

    def test_first_error_weight(self):
        assert DP_E[0] == 71.0 / 57600.0


class TestConfiguration:
    """Constructor validation and lifecycle."""

    @pytest.mark.parametrize(
        "args",
        [
            (0.01, 0.0, 0.1, 1e-12),  # min_step not positive
            (0.01, 0.2, 0.1, 1e-12),  # min_step > max_step
            (0.01, 1e-4, 0.1, 0.0),  # max_err not positive
        ],
    )
    def test_invalid_config_raises(self, args):
        with pytest.raises(ValueError):
            DPIntegrator(*args)

    def test_starts_unarmed(self):
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-12)
        assert not integrator.armed
        assert integrator.last_derivative is None
        assert integrator.last_error is None
        assert integrator.default_step == 0.01

    def test_reset_restores_default_step(self):
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-6)
        integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        assert integrator.armed
        assert integrator.default_step != 0.01
        integrator.reset()
        assert not integrator.armed
        assert integrator.default_step == 0.01

    def test_reset_default_step_keeps_cache(self):
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-6)
        integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        integrator.reset_default_step()
        assert integrator.default_step == 0.01
        assert integrator.armed


# ===========================================================================
# FSAL and determinism
# ===========================================================================


class TestFSAL:
    """First-same-as-last caching of the derivative at the accepted state."""

    def test_evaluation_counts(self):
        """7 evaluations when unarmed, 6 when armed, 7 again after reset."""
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)
        fn = CountingDerivative(oscillator)
        state = StateVector([0.0, 1.0, 0.0])

        state = integrator.propagate(state, fn)
        assert fn.calls == 7

        state = integrator.propagate(state, fn)
        assert fn.calls == 13

        integrator.reset()
        integrator.propagate(state, fn)
        assert fn.calls == 20

    def test_cached_derivative_matches_fresh_evaluation(self):
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)
        state = integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        np.testing.assert_allclose(
            integrator.last_derivative.components,
            oscillator(state).components,
            rtol=0, atol=1e-15,
        )

    def test_reset_discards_stale_derivative(self):
        """After reset the first stage is evaluated at the new start state."""
        used = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)
        used.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        used.reset()
        fresh = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)

        other = StateVector([3.0, -0.2, 0.9])
        np.testing.assert_array_equal(
            used.propagate(other, oscillator).components,
            fresh.propagate(other, oscillator).components,
        )

    def test_deterministic(self):
        """Identical inputs and integrator state give bit-identical output."""
        runs = []
        for _ in range(2):
            integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)
            state = StateVector([0.0, 1.0, 0.0])
            for _ in range(5):
                state = integrator.propagate(state, oscillator)
            runs.append((np.asarray(state.components), integrator.default_step))
        np.testing.assert_array_equal(runs[0][0], runs[1][0])
        assert runs[0][1] == runs[1][1]


# ===========================================================================
# Step adaptation
# ===========================================================================


class TestStepControl:
    """Step-size update rule and clamping."""

    def test_zero_derivative_jumps_to_max_step(self):
        integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-12)
        state = StateVector([1.0, 2.0])
        result = integrator.propagate(state, lambda s: StateVector.zeros(2))
        np.testing.assert_array_equal(result.components, state.components)
        assert integrator.last_error == 0.0
        assert integrator.default_step == 0.1

    def test_tiny_tolerance_clamps_to_min_step(self, caplog):
        integrator = DPIntegrator(0.5, 1e-3, 1.0, 1e-300)
        with caplog.at_level(logging.DEBUG, logger="worldline.numeric.integrators"):
            integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        assert integrator.default_step == 1e-3
        assert "Step floor reached" in caplog.text

    def test_update_rule(self):
        """next = h * (max_err / err) ** 0.25 inside the clamp range."""
        integrator = DPIntegrator(0.05, 1e-6, 1.0, 1e-12)
        integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        expected = 0.05 * (1e-12 / integrator.last_error) ** 0.25
        assert math.isclose(integrator.default_step, expected, rel_tol=1e-12)

    def test_explicit_step_overrides_default(self):
        integrator = DPIntegrator(0.05, 1e-6, 1.0, 1e-12)
        result = integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator, 0.2)
        assert math.isclose(float(result[0]), 0.2, rel_tol=1e-14)


# ===========================================================================
# Accuracy
# ===========================================================================


class TestAccuracy:
    """Global error on a closed orbit and agreement with Diffrax."""

    def test_oscillator_full_period(self):
        max_err = 1e-12
        integrator = DPIntegrator(0.01, 1e-4, 0.1, max_err)
        state, n_steps = integrate_to(
            integrator, StateVector([0.0, 1.0, 0.0]), oscillator, 2.0 * math.pi
        )
        assert math.isclose(float(state[0]), 2.0 * math.pi, rel_tol=1e-13)
        error = float(jnp.hypot(state[1] - 1.0, state[2]))
        assert error < 100.0 * n_steps * max_err

    def test_single_step_matches_diffrax_dopri5(self):
        """Same tableau, same 5th-order solution.

        diffrax weights its embedded error estimate differently, so only
        the propagated state is compared here.
        """
        diffrax = pytest.importorskip("diffrax")

        h = 0.1
        y0 = jnp.array([1.0, 0.0])
        term = diffrax.ODETerm(lambda t, y, args: jnp.stack([y[1], -y[0]]))
        solver = diffrax.Dopri5()
        solver_state = solver.init(term, 0.0, h, y0, None)
        y1, _, _, _, _ = solver.step(
            term, 0.0, h, y0, None, solver_state, made_jump=False
        )

        integrator = DPIntegrator(h, 1e-6, 1.0, 1e-12)
        ours = integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)

        np.testing.assert_allclose(ours.components[1:], y1, rtol=0, atol=1e-14)

    def test_error_estimate_from_stages(self):
        """last_error is the norm of the DP_E combination of k1..k7."""

        def f(y):
            return np.array([1.0, y[2], -y[1]])

        h = 0.1
        y0 = np.array([0.0, 1.0, 0.0])
        ks = [f(y0) * h]
        for row in DP_A:
            stage = y0 + sum(a * k for a, k in zip(row, ks))
            ks.append(f(stage) * h)
        y1 = y0 + sum(b * k for b, k in zip(DP_B, ks))
        ks.append(f(y1) * h)
        expected = np.linalg.norm(sum(e * k for e, k in zip(DP_E, ks)))

        integrator = DPIntegrator(h, 1e-6, 1.0, 1e-12)
        ours = integrator.propagate(StateVector(y0), oscillator)

        np.testing.assert_allclose(ours.components, y1, rtol=0, atol=1e-14)
        assert expected > 0.0
        assert math.isclose(integrator.last_error, expected, rel_tol=1e-6)


class TestRK4:
    """Fixed-step classic Runge-Kutta."""

    def test_oscillator_full_period(self):
        n_steps = 1000
        integrator = RK4Integrator(2.0 * math.pi / n_steps)
        state = StateVector([0.0, 1.0, 0.0])
        for _ in range(n_steps):
            state = integrator.propagate(state, oscillator)
        np.testing.assert_allclose(state.components[1:], [1.0, 0.0], atol=1e-9)

    def test_set_default_step(self):
        integrator = RK4Integrator(0.1)
        integrator.set_default_step(0.25)
        result = integrator.propagate(StateVector([0.0, 1.0, 0.0]), oscillator)
        assert math.isclose(float(result[0]), 0.25, rel_tol=1e-14)
