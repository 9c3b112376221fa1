"""Recursive Newton-Euler inverse dynamics for serial chains.

Given joint positions, velocities, accelerations and an external wrench per
segment, the recursion returns the joint efforts that realize the motion:

* forward pass, base to tip: segment twists and accelerations, with gravity
  entered as a base acceleration of -g;
* backward pass, tip to base: segment wrenches, each transmitted to its parent
  and projected onto the joint axis.

External wrenches act on the segments and are expressed in each segment's
frame; they are subtracted from the wrench the joint has to supply.
"""

from typing import Protocol

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array

from jax_dynamics.transforms import se3

from .kinematic_chain import SerialChain


class DynamicsEngineError(RuntimeError):
    """Raised when the recursion cannot produce joint efforts."""


class InverseDynamicsEngine(Protocol):
    """Anything that turns a joint state and segment wrenches into efforts."""

    def solve(self, q: Array, qd: Array, qdd: Array, wrenches: Array) -> Array:
        ...


@jax.jit
def _rne(chain: SerialChain, gravity: Array, q: Array, qd: Array, qdd: Array,
         wrenches: Array) -> Array:
    num_segments = chain.segment_count
    dtype = chain.axes.dtype

    def scatter(values):
        full = jnp.zeros(num_segments, dtype=dtype)
        return full.at[chain.movable_segments].set(values)

    q_seg, qd_seg, qdd_seg = scatter(q), scatter(qd), scatter(qdd)

    def forward_step(carry, i):
        V_parent, A_parent = carry
        S = chain.axes[i]

        T_parent_to_child = chain.origins[i] @ se3.exp(S * q_seg[i])
        X = se3.adjoint(se3.inverse(T_parent_to_child))

        V = X @ V_parent + S * qd_seg[i]
        A = X @ A_parent + S * qdd_seg[i] + se3.ad(V) @ S * qd_seg[i]

        G = chain.inertias[i]
        F = G @ A - se3.ad(V).T @ (G @ V) - wrenches[i]
        return (V, A), (X, F)

    V_base = jnp.zeros(6, dtype=dtype)
    A_base = jnp.concatenate([-gravity, jnp.zeros(3, dtype=dtype)])
    _, (X, F_local) = jax.lax.scan(forward_step, (V_base, A_base), jnp.arange(num_segments))

    # Adjoint carrying segment i+1 quantities; unused for the tip segment.
    X_next = jnp.concatenate([X[1:], jnp.zeros((1, 6, 6), dtype=dtype)])

    def backward_step(F_child, xs):
        F_i, X_child, S = xs
        F = F_i + X_child.T @ F_child
        return F, S @ F

    _, tau_seg = jax.lax.scan(
        backward_step,
        jnp.zeros(6, dtype=dtype),
        (F_local, X_next, chain.axes),
        reverse=True,
    )

    return tau_seg[chain.movable_segments]


class RecursiveNewtonEuler:
    """Inverse dynamics engine bound to one chain and one gravity vector."""

    def __init__(self, chain: SerialChain, gravity):
        self.chain = chain
        self.gravity = jnp.asarray(gravity, dtype=chain.axes.dtype)
        if self.gravity.shape != (3,):
            raise ValueError(f"gravity must have shape (3,), got {self.gravity.shape}")

    def solve(self, q: Array, qd: Array, qdd: Array, wrenches: Array) -> Array:
        """Joint efforts for the given state and segment wrenches.

        Args:
            q, qd, qdd: (num_joints,) positions, velocities and accelerations.
            wrenches: (num_segments, 6) external wrenches [f, t] per segment.

        Returns:
            (num_joints,) joint efforts.

        Raises:
            DynamicsEngineError: On a size mismatch or a non-finite result.
        """
        num_joints, num_segments = self.chain.joint_count, self.chain.segment_count
        for label, value in (("q", q), ("qd", qd), ("qdd", qdd)):
            if jnp.shape(value) != (num_joints,):
                raise DynamicsEngineError(f"{label} must have shape ({num_joints},), got {jnp.shape(value)}")
        if jnp.shape(wrenches) != (num_segments, 6):
            raise DynamicsEngineError(
                f"wrenches must have shape ({num_segments}, 6), got {jnp.shape(wrenches)}")

        if num_segments == 0:
            return jnp.zeros(0)

        tau = _rne(self.chain, self.gravity, jnp.asarray(q), jnp.asarray(qd),
                   jnp.asarray(qdd), jnp.asarray(wrenches))
        if not np.all(np.isfinite(np.asarray(tau))):
            raise DynamicsEngineError("Recursion produced non-finite joint efforts")
        return tau
