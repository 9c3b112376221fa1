"""I/O utilities for loading robot models from URDF and SRDF files.

This module provides functions for parsing standard robotics file formats
and converting them to JAX-native data structures.
"""

from .srdf_parser import load_srdf, parse_srdf
from .urdf_parser import load_urdf, parse_urdf

__all__ = ["load_urdf", "parse_urdf", "load_srdf", "parse_srdf"]
