"""Shared test fixtures for the worldline test suite.

Float64 enforcement is verified at import time.  Every test that touches
JAX arrays relies on double precision for its tolerances.
"""

import jax.numpy as jnp
import numpy as np
import pytest

import worldline  # noqa: F401  (enables x64)
from worldline.charts import (
    EddingtonFinkelsteinChart,
    KerrEddingtonFinkelsteinChart,
    MinkowskiChart,
    NearPoleEddingtonFinkelsteinChart,
    NearPoleKerrChart,
    NearPoleSchwarzschildChart,
    SchwarzschildChart,
)

# ---------------------------------------------------------------------------
# Float64 enforcement check fails LOUD if x64 is not enabled
# ---------------------------------------------------------------------------
_probe = jnp.array(1.0)
assert _probe.dtype == jnp.float64, (
    f"JAX float64 not enabled!  Got dtype={_probe.dtype}.  "
    "Ensure jax.config.update('jax_enable_x64', True) runs before any JAX import."
)


# ---------------------------------------------------------------------------
# Chart fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def minkowski() -> MinkowskiChart:
    return MinkowskiChart()


@pytest.fixture
def schwarzschild() -> SchwarzschildChart:
    return SchwarzschildChart(M=1.0)


@pytest.fixture
def eddington() -> EddingtonFinkelsteinChart:
    return EddingtonFinkelsteinChart(M=1.0)


@pytest.fixture
def kerr() -> KerrEddingtonFinkelsteinChart:
    return KerrEddingtonFinkelsteinChart(M=1.0, a=0.7)


# (chart, sample coordinates inside its domain)
CHART_SAMPLES = [
    (MinkowskiChart(), [0.3, 1.0, -2.0, 0.5]),
    (SchwarzschildChart(M=1.0), [0.0, 5.0, 1.1, 0.4]),
    (EddingtonFinkelsteinChart(M=1.0), [2.0, 1.5, 0.8, 2.0]),
    (KerrEddingtonFinkelsteinChart(M=1.0, a=0.7), [0.0, 4.0, 1.2, 0.3]),
    (NearPoleSchwarzschildChart(M=1.0, pole="north"), [0.0, 6.0, 0.1, -0.2]),
    (NearPoleEddingtonFinkelsteinChart(M=1.0, pole="south"), [1.0, 3.0, 0.05, 0.3]),
    (NearPoleKerrChart(M=1.0, a=0.7, pole="north"), [0.0, 4.0, 0.2, 0.1]),
    (NearPoleKerrChart(M=1.0, a=0.7, pole="south"), [0.0, 4.0, -0.1, 0.25]),
]


@pytest.fixture(params=CHART_SAMPLES, ids=lambda s: s[0].name())
def chart_sample(request):
    chart, coords = request.param
    return chart, jnp.array(coords)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
