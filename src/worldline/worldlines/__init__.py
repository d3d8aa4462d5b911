"""Worldline state types driven by the integrators."""

from .entity import Entity, frame_generator, frame_rhs
from .observables import interpolate_crossing, tetrad_gram, velocity_norm
from .particle import Particle, geodesic_rhs

__all__ = [
    "Entity",
    "Particle",
    "frame_generator",
    "frame_rhs",
    "geodesic_rhs",
    "interpolate_crossing",
    "tetrad_gram",
    "velocity_norm",
]
