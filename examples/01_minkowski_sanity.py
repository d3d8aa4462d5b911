"""Minkowski spacetime sanity check.

Demonstrates worldline basics on flat spacetime, where every motion has a
closed form:

- A free particle moves on a straight line
- A uniformly accelerated observer follows a hyperbola
- The observer's tetrad stays orthonormal
"""

import math

import jax.numpy as jnp

from worldline.charts import MinkowskiChart
from worldline.geometry import Tensor
from worldline.numeric import DPIntegrator
from worldline.worldlines import Entity, Particle, tetrad_gram, velocity_norm

chart = MinkowskiChart()
origin = chart.point([0.0, 0.0, 0.0, 0.0])

# Free particle with speed 0.6
gamma = 1.0 / math.sqrt(1.0 - 0.36)
particle = Particle(origin, Tensor.vector(origin, [gamma, 0.6 * gamma, 0.0, 0.0]))
integrator = DPIntegrator(0.1, 1e-4, 0.5, 1e-12)
for _ in range(20):
    integrator.propagate_in_place(particle, Particle.derivative)

print("Minkowski Sanity Check")
print("=" * 40)
print(f"Free particle at t = {float(particle.pos[0]):.4f}: x = {float(particle.pos[1]):.6f}")
print(f"  expected x = {0.6 * float(particle.pos[0]):.6f}")
print(f"  g(v, v) = {float(velocity_norm(particle)):.2e} (expected 1)")

# Uniformly accelerated observer, a = 1, up to proper time tau = 1
e = jnp.eye(4)
observer = Entity(origin, *(Tensor.vector(origin, e[k]) for k in range(4)))
observer.add_force([1.0, 0.0, 0.0])
integrator = DPIntegrator(0.05, 1e-4, 0.5, 1e-12)
for _ in range(20):
    integrator.propagate_in_place(observer, Entity.derivative, 0.05)

t, x = float(observer.pos[0]), float(observer.pos[1])
print(f"\nAccelerated observer at tau = 1: t = {t:.8f}, x = {x:.8f}")
print(f"  expected t = {math.sinh(1.0):.8f}, x = {math.cosh(1.0) - 1.0:.8f}")
print(f"Tetrad Gram matrix:\n{tetrad_gram(observer)}")

assert abs(t - math.sinh(1.0)) < 1e-9, "Hyperbolic motion broken!"
assert abs(x - (math.cosh(1.0) - 1.0)) < 1e-9, "Hyperbolic motion broken!"
print("\nAll sanity checks passed!")
