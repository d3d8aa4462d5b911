"""Worldlines of test particles and observers in curved spacetime.

Units: geometric (G = c = 1) throughout.  Metric signature: (+, -, -, -).
"""

# Float64 enforcement - must happen before any JAX imports that might
# create arrays with default float32 precision.
import jax
jax.config.update("jax_enable_x64", True)

__version__ = "0.1.0"
