"""SO(3) rotation helpers in JAX.

Rotation matrices, axis-angle vectors and the skew-symmetric cross-product
operator used by the spatial algebra in `se3` and the dynamics recursion.
All functions are pure, JIT-able, and operate on JAX arrays.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Implements Rodrigues' formula. Near-zero angles fall back to a Taylor
    expansion so the map stays finite and differentiable at the identity.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)

    small_angle = angle < 1e-8

    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))

    axis = jnp.where(angle > 1e-8, log_r / jnp.where(small_angle, 1.0, angle), log_r)

    K = skew_symmetric(axis)

    # R = I + sin(θ) K + (1 - cos(θ)) K²
    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    R = (I +
         sin_angle[..., None] * K +
         (1.0 - cos_angle)[..., None] * jnp.matmul(K, K))

    return R


def from_rpy(rpy: Array) -> Array:
    """
    Build a rotation matrix from fixed-axis roll, pitch, yaw (URDF convention).

    Args:
        rpy: (..., 3) array of [roll, pitch, yaw] in radians

    Returns:
        (..., 3, 3) rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    """
    rpy = jnp.asarray(rpy)
    zeros = jnp.zeros(rpy.shape[:-1], dtype=rpy.dtype)
    roll, pitch, yaw = rpy[..., 0], rpy[..., 1], rpy[..., 2]
    R_x = exp(jnp.stack([roll, zeros, zeros], axis=-1))
    R_y = exp(jnp.stack([zeros, pitch, zeros], axis=-1))
    R_z = exp(jnp.stack([zeros, zeros, yaw], axis=-1))
    return R_z @ R_y @ R_x


def multiply(R1: Array, R2: Array) -> Array:
    """Compose two rotation matrices (R1 @ R2)."""
    return jnp.matmul(R1, R2)


def inverse(R: Array) -> Array:
    """
    Compute inverse of rotation matrix.

    For rotation matrices, the inverse is simply the transpose.

    Args:
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 3, 3) inverse rotation matrix
    """
    return jnp.swapaxes(R, -1, -2)


def apply(R: Array, v: Array) -> Array:
    """
    Apply rotation to vector(s).

    Args:
        R: (..., 3, 3) rotation matrix
        v: (..., 3) or (..., N, 3) vector(s) to rotate

    Returns:
        (..., 3) or (..., N, 3) rotated vector(s)
    """
    if v.ndim == R.ndim - 1:
        return jnp.einsum('...ij,...j->...i', R, v)
    else:
        return jnp.einsum('...ij,...nj->...ni', R, v)


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric matrix, so that skew(a) @ b == a x b.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)
