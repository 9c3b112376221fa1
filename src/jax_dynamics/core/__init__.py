"""Core robot model data structures for JAX Dynamics.

This module provides the fundamental data structures for representing
robots in a JAX-native, immutable format.
"""

from .joint_group import JointGroup
from .robot_model import JointInfo, RobotModel

__all__ = ["JointGroup", "JointInfo", "RobotModel"]
