"""Numerical substrate: state vectors and one-step ODE integrators."""
from __future__ import annotations

from .integrators import (
    DP_A,
    DP_B,
    DP_C,
    DP_E,
    DPIntegrator,
    MutableState,
    RK4Integrator,
    State,
)
from .state_vector import StateVector

__all__ = [
    "DP_A",
    "DP_B",
    "DP_C",
    "DP_E",
    "DPIntegrator",
    "MutableState",
    "RK4Integrator",
    "State",
    "StateVector",
]
