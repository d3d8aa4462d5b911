"""Entity state: tetrad maintenance and forced, rotating transport.

Flat-space reference motions:

* constant proper acceleration a along forward (hyperbolic motion)
      t = sinh(a tau) / a,  x = (cosh(a tau) - 1) / a
* constant angular velocity w about up
      forward = cos(w tau) e_x + sin(w tau) e_y
"""

import math

import jax.numpy as jnp
import numpy as np
import pytest

from worldline.charts import EddingtonFinkelsteinChart, create_default_registry
from worldline.geometry import Tensor
from worldline.numeric import DPIntegrator, StateVector
from worldline.worldlines import Entity, frame_generator, tetrad_gram

ETA = jnp.diag(jnp.array([1.0, -1.0, -1.0, -1.0]))


def rest_frame(chart, coords) -> Entity:
    p = chart.point(coords)
    e = jnp.eye(4)
    return Entity(p, *(Tensor.vector(p, e[k]) for k in range(4)))


def rough_frame(chart, coords) -> Entity:
    """A non-orthonormal but linearly independent tetrad."""
    p = chart.point(coords)
    return Entity(
        p,
        Tensor.vector(p, [1.2, 0.1, 0.0, 0.0]),
        Tensor.vector(p, [0.1, 1.0, 0.0, 0.0]),
        Tensor.vector(p, [0.0, 0.2, 1.0, 0.1]),
        Tensor.vector(p, [0.0, 0.0, 0.3, 1.0]),
    )


def run(entity: Entity, tau: float, step: float) -> None:
    integrator = DPIntegrator(step, 1e-6, 1.0, 1e-12)
    for _ in range(round(tau / step)):
        integrator.propagate_in_place(entity, Entity.derivative, step)


class TestEntityState:
    """Construction, accessors and accumulators."""

    def test_accessors(self, minkowski):
        entity = rest_frame(minkowski, [0.0, 1.0, 2.0, 3.0])
        assert entity.vel is entity.tetrad[0]
        assert len(entity.tetrad) == 4
        assert all(e.point is entity.pos for e in entity.tetrad)
        assert entity.chart is minkowski

    def test_rejects_covector(self, minkowski):
        p = minkowski.point(jnp.zeros(4))
        v = Tensor.vector(p, jnp.ones(4))
        with pytest.raises(ValueError, match="vectors"):
            Entity(p, v, v, v, Tensor.covector(p, jnp.ones(4)))

    def test_force_accumulators(self, minkowski):
        entity = rest_frame(minkowski, jnp.zeros(4))
        entity.add_force([1.0, 0.0, 0.0])
        entity.add_force([0.5, 2.0, 0.0])
        entity.add_ang_vel([0.0, 0.0, 3.0])
        np.testing.assert_allclose(entity.force, [1.5, 2.0, 0.0])
        np.testing.assert_allclose(entity.ang_vel, [0.0, 0.0, 3.0])
        entity.reset_force()
        entity.reset_ang_vel()
        assert jnp.all(entity.force == 0.0)
        assert jnp.all(entity.ang_vel == 0.0)

    def test_copy_carries_accumulators(self, minkowski):
        entity = rest_frame(minkowski, jnp.zeros(4))
        entity.add_force([1.0, 0.0, 0.0])
        twin = entity.copy()
        twin.reset_force()
        np.testing.assert_allclose(entity.force, [1.0, 0.0, 0.0])

    def test_shift_in_place_layout(self, minkowski):
        entity = rest_frame(minkowski, jnp.zeros(4))
        entity.shift_in_place(StateVector(jnp.arange(20.0)), 1.0)
        np.testing.assert_allclose(entity.pos.coords, [0.0, 1.0, 2.0, 3.0])
        np.testing.assert_allclose(entity.tetrad[0].components, [5.0, 5.0, 6.0, 7.0])
        np.testing.assert_allclose(entity.tetrad[3].components, [16.0, 17.0, 18.0, 20.0])
        assert all(e.point is entity.pos for e in entity.tetrad)

    def test_generator_layout(self):
        gen = frame_generator(jnp.array([1.0, 2.0, 3.0]), jnp.array([4.0, 5.0, 6.0]))
        np.testing.assert_allclose(gen[0, 1:], [1.0, 2.0, 3.0])
        np.testing.assert_allclose(gen[1:, 0], [1.0, 2.0, 3.0])
        spatial = gen[1:, 1:]
        np.testing.assert_allclose(spatial, -spatial.T)
        assert gen[2, 1] == 6.0 and gen[1, 3] == 5.0 and gen[3, 2] == 4.0


class TestOrthonormalize:
    """Gram-Schmidt under the local metric."""

    def test_produces_orthonormal_tetrad(self, schwarzschild):
        entity = rough_frame(schwarzschild, [0.0, 6.0, 1.2, 0.3])
        entity.orthonormalize()
        np.testing.assert_allclose(tetrad_gram(entity), ETA, atol=1e-12)

    def test_keeps_velocity_direction(self, schwarzschild):
        entity = rough_frame(schwarzschild, [0.0, 6.0, 1.2, 0.3])
        before = entity.vel.components
        entity.orthonormalize()
        ratio = entity.vel.components[:2] / before[:2]
        assert jnp.isclose(ratio[0], ratio[1], rtol=1e-12)
        assert ratio[0] > 0

    def test_idempotent(self, kerr):
        entity = rough_frame(kerr, [0.0, 5.0, 1.0, 0.0])
        entity.orthonormalize()
        once = [e.components for e in entity.tetrad]
        entity.orthonormalize()
        for a, b in zip(once, entity.tetrad):
            np.testing.assert_allclose(b.components, a, atol=1e-12)


class TestEntityDerivative:
    """Equation of motion of the tetrad."""

    def test_free_frame_is_parallel_transported(self, schwarzschild):
        entity = rough_frame(schwarzschild, [0.0, 6.0, 1.2, 0.3])
        entity.orthonormalize()
        d = entity.derivative()
        assert len(d) == 20

        gamma = schwarzschild.christoffel_components(entity.pos.coords)
        u = entity.vel.components
        np.testing.assert_allclose(d.components[:4], u)
        for j, e in enumerate(entity.tetrad):
            expected = -jnp.einsum("abc,b,c->a", gamma, u, e.components)
            np.testing.assert_allclose(d.components[4 * (j + 1):4 * (j + 2)],
                                       expected, rtol=1e-12, atol=1e-15)

    def test_hyperbolic_motion(self, minkowski):
        a, tau = 0.5, 2.0
        entity = rest_frame(minkowski, jnp.zeros(4))
        entity.add_force([a, 0.0, 0.0])
        run(entity, tau, 0.05)

        np.testing.assert_allclose(
            entity.pos.coords,
            [math.sinh(a * tau) / a, (math.cosh(a * tau) - 1.0) / a, 0.0, 0.0],
            atol=1e-10,
        )
        np.testing.assert_allclose(
            entity.vel.components,
            [math.cosh(a * tau), math.sinh(a * tau), 0.0, 0.0],
            atol=1e-10,
        )
        np.testing.assert_allclose(tetrad_gram(entity), ETA, atol=1e-10)

    def test_rotation_about_up(self, minkowski):
        w, tau = 2.0, 1.0
        entity = rest_frame(minkowski, jnp.zeros(4))
        entity.add_ang_vel([0.0, 0.0, w])
        run(entity, tau, 0.05)

        forward, right, up = entity.tetrad[1:]
        c, s = math.cos(w * tau), math.sin(w * tau)
        np.testing.assert_allclose(forward.components, [0.0, c, s, 0.0], atol=1e-10)
        np.testing.assert_allclose(right.components, [0.0, -s, c, 0.0], atol=1e-10)
        np.testing.assert_allclose(up.components, [0.0, 0.0, 0.0, 1.0], atol=1e-14)
        np.testing.assert_allclose(entity.pos.coords, [tau, 0.0, 0.0, 0.0], atol=1e-12)

    def test_free_fall_preserves_orthonormality(self, schwarzschild):
        entity = rough_frame(schwarzschild, [0.0, 8.0, 1.2, 0.3])
        entity.orthonormalize()
        run(entity, 1.0, 0.1)
        np.testing.assert_allclose(tetrad_gram(entity), ETA, atol=1e-9)


class TestEntityConversion:
    """Carrying an observer across charts."""

    def test_tetrad_stays_orthonormal(self, schwarzschild):
        registry = create_default_registry()
        entity = rough_frame(schwarzschild, [0.0, 6.0, 1.2, 0.3])
        entity.orthonormalize()
        entity.add_force([0.1, 0.0, 0.0])

        ef = EddingtonFinkelsteinChart(M=schwarzschild.M)
        converted = entity.convert(registry.get(schwarzschild, ef))
        assert converted.chart is ef
        np.testing.assert_allclose(tetrad_gram(converted), ETA, atol=1e-12)
        np.testing.assert_allclose(converted.force, [0.1, 0.0, 0.0])
