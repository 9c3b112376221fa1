"""
Global constants for JAX Dynamics.

Numeric defaults shared by the solver, the command-line interface and the
logging setup. Everything else is passed explicitly to constructors.
"""
from typing import Tuple

# Standard gravity pointing down the world z axis, in m/s^2.
DEFAULT_GRAVITY: Tuple[float, float, float] = (0.0, 0.0, -9.81)

# Below this change in joint effort per newton of tip force, a joint is
# reported as insensitive to the payload.
NEAR_SINGULAR_TOLERANCE: float = 1e-9

LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT: str = '%H:%M:%S'
