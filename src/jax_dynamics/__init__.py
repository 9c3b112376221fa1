"""
JAX Dynamics: joint torques and payload capacity for serial robot chains.

This library loads robots from URDF/SRDF, computes inverse dynamics with a
JIT-compilable recursive Newton-Euler engine and derives the maximum payload
a joint group can hold at a configuration.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from . import dynamics
from .dynamics import DynamicsSolver, PayloadLimit
from .state import RobotState

__version__ = "0.1.0"
__all__ = ["transforms", "core", "io", "dynamics", "DynamicsSolver", "PayloadLimit", "RobotState"]
