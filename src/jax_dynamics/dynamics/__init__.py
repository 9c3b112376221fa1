"""Inverse dynamics and payload analysis for serial chains.

This module provides chain extraction from a robot model, a JIT-compiled
recursive Newton-Euler engine and the DynamicsSolver built on top of them.
"""

from .kinematic_chain import ChainError, KinematicTree, SerialChain, build_tree
from .rne import DynamicsEngineError, InverseDynamicsEngine, RecursiveNewtonEuler
from .solver import DynamicsSolver, PayloadLimit

__all__ = [
    "ChainError",
    "KinematicTree",
    "SerialChain",
    "build_tree",
    "DynamicsEngineError",
    "InverseDynamicsEngine",
    "RecursiveNewtonEuler",
    "DynamicsSolver",
    "PayloadLimit",
]
