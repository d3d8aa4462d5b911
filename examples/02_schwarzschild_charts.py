"""Schwarzschild charts and chart switching.

A photon falls radially into a Schwarzschild black hole.  The Schwarzschild
chart is singular at r = 2M, so the photon is moved to ingoing
Eddington-Finkelstein coordinates, where it crosses the horizon smoothly.

Verifies:
- The photon stays null in both charts
- Advanced time u is conserved along ingoing radial light rays
"""

import math

from worldline.charts import (
    EddingtonFinkelsteinChart,
    SchwarzschildChart,
    create_default_registry,
)
from worldline.geometry import Tensor
from worldline.numeric import DPIntegrator
from worldline.worldlines import Particle, velocity_norm

M = 1.0
registry = create_default_registry()
schw = SchwarzschildChart(M=M)
ef = EddingtonFinkelsteinChart(M=M)

r0 = 10.0
f0 = 1.0 - 2.0 * M / r0
start = schw.point([0.0, r0, math.pi / 2, 0.0])
photon = Particle(start, Tensor.vector(start, [1.0 / f0, -1.0, 0.0, 0.0]))

integrator = DPIntegrator(0.01, 1e-4, 0.1, 1e-10)
while float(photon.pos[1]) > 4.0 * M:
    integrator.propagate_in_place(photon, Particle.derivative)
print(f"Schwarzschild chart: r = {float(photon.pos[1]):.4f}, "
      f"g(v, v) = {float(velocity_norm(photon)):.2e}")

# Switch charts before the horizon; the cached derivative belongs to the old chart.
photon = photon.convert(registry.get(schw, ef))
integrator.reset()
u_entry = float(photon.pos[0])

while float(photon.pos[1]) > 0.5 * M:
    integrator.propagate_in_place(photon, Particle.derivative)
print(f"Eddington-Finkelstein chart: r = {float(photon.pos[1]):.4f}, "
      f"u drift = {float(photon.pos[0]) - u_entry:.2e}, "
      f"g(v, v) = {float(velocity_norm(photon)):.2e}")

assert abs(float(photon.pos[0]) - u_entry) < 1e-8, "u should be constant!"
print("\nInside the horizon with finite coordinates: chart switch works.")
