"""Shapiro delay of a radar echo grazing the Sun (Earth - Sun - Venus).

Two photons leave the solar limb tangentially, one outward to Earth's orbital
radius and one (integrated backwards in time) to Venus's.  The coordinate
time between them, converted to Earth proper time and doubled for the round
trip, minus the flat-space light travel time is the gravitational delay.

Constants are in seconds with G = c = 1.

Usage
-----
Default run in Schwarzschild coordinates::

    python scripts/shapiro_delay.py

Same experiment in ingoing Eddington-Finkelstein coordinates::

    python scripts/shapiro_delay.py --chart eddington

Show help::

    python scripts/shapiro_delay.py --help
"""
from __future__ import annotations

import argparse
import logging
import time

import jax.numpy as jnp
import numpy as np

from worldline.charts import EddingtonFinkelsteinChart, SchwarzschildChart
from worldline.charts.schwarzschild import tortoise_shift
from worldline.geometry import Tensor
from worldline.numeric import DPIntegrator
from worldline.worldlines import Particle, interpolate_crossing

logger = logging.getLogger("shapiro_delay")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

M_SUN = 4.9e-6  # mass of the Sun
R_SUN = 2.33  # radius of the Sun
Y_EARTH = 498.67  # Earth distance from the Sun
Y_VENUS = 370.7  # Venus distance from the Sun

DEFAULT_STEP = 0.01
MIN_STEP = 1e-4
MAX_STEP = 0.1
MAX_ERR = 1e-12
LOG_EVERY = 100


def propagate_to_radius(
    photon: Particle,
    integrator: DPIntegrator,
    r_max: float,
    log_every: int,
) -> np.ndarray:
    """Advance *photon* until r >= r_max; return coordinates interpolated at r_max."""
    last = photon.pos
    i = 1
    while float(photon.pos[1]) < r_max:
        last = photon.pos
        integrator.propagate_in_place(photon, Particle.derivative)
        i += 1
        if i % log_every == 0:
            logger.info("Iteration %d... r = %.6f", i, float(photon.pos[1]))
    crossing = interpolate_crossing(last, photon.pos, 1, r_max)
    return np.asarray(crossing.coords)


def launch(chart, mass: float, radius: float, direction: float) -> Particle:
    """Photon tangent to the limb at (t=0, r=R, theta=pi/2, phi=0).

    ``direction=+1`` moves forward in time, ``-1`` backward.
    """
    u0 = np.sqrt(radius**3 / (radius - 2.0 * mass))
    t0 = 0.0
    if isinstance(chart, EddingtonFinkelsteinChart):
        t0 = float(tortoise_shift(jnp.asarray(radius), mass))
    start = chart.point([t0, radius, np.pi / 2.0, 0.0])
    v = Tensor.vector(start, [direction * u0, 0.0, 0.0, direction])
    return Particle(start, v)


def coordinate_time(chart, coords: np.ndarray, mass: float) -> float:
    """Schwarzschild t of a sample, whatever chart it was integrated in."""
    if isinstance(chart, EddingtonFinkelsteinChart):
        return float(coords[0] - tortoise_shift(jnp.asarray(coords[1]), mass))
    return float(coords[0])


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Shapiro delay of a solar-grazing radar echo."
    )
    parser.add_argument("--mass", type=float, default=M_SUN)
    parser.add_argument("--radius", type=float, default=R_SUN)
    parser.add_argument("--earth", type=float, default=Y_EARTH)
    parser.add_argument("--venus", type=float, default=Y_VENUS)
    parser.add_argument(
        "--chart", choices=["schwarzschild", "eddington"], default="schwarzschild"
    )
    parser.add_argument("--default-step", type=float, default=DEFAULT_STEP)
    parser.add_argument("--min-step", type=float, default=MIN_STEP)
    parser.add_argument("--max-step", type=float, default=MAX_STEP)
    parser.add_argument("--max-err", type=float, default=MAX_ERR)
    parser.add_argument("--log-every", type=int, default=LOG_EVERY)
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log integrator step adaptation.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    if args.chart == "eddington":
        chart = EddingtonFinkelsteinChart(M=args.mass)
    else:
        chart = SchwarzschildChart(M=args.mass)

    r_e = np.hypot(args.radius, args.earth)
    r_v = np.hypot(args.radius, args.venus)
    t_flat = 2.0 * (args.earth + args.venus)

    integrator = DPIntegrator(
        args.default_step, args.min_step, args.max_step, args.max_err
    )

    t_start = time.time()
    logger.info("Propagating the first photon...")
    photon1 = launch(chart, args.mass, args.radius, 1.0)
    t1 = coordinate_time(
        chart, propagate_to_radius(photon1, integrator, r_e, args.log_every),
        args.mass,
    )

    integrator.reset()

    logger.info("Propagating the second photon...")
    photon2 = launch(chart, args.mass, args.radius, -1.0)
    t2 = coordinate_time(
        chart, propagate_to_radius(photon2, integrator, r_v, args.log_every),
        args.mass,
    )
    logger.info("Propagation finished in %.1fs.", time.time() - t_start)

    dt = (t1 - t2) * 2.0 * np.sqrt(1.0 - 2.0 * args.mass / r_e)
    print(f"t1 = {t1}")
    print(f"t2 = {t2}")
    print(f"dt = {dt}")
    print(f"delay = {dt - t_flat}")


if __name__ == "__main__":
    main()
