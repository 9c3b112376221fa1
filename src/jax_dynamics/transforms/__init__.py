"""
JAX rigid body transforms used by kinematics and dynamics.

- SO(3) rotations (so3 module)
- SE(3) homogeneous transforms, adjoints and twist brackets (se3 module)

All functions are pure and JIT-compilable.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
