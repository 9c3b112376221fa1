"""Tests for the transforms module."""

import hypothesis
import jax
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_dynamics.transforms import se3, so3

# Use hypothesis profile for CI
hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)


def _random_transform(key):
    key1, key2 = jax.random.split(key)
    p = jax.random.uniform(key1, (3,), minval=-2.0, maxval=2.0)
    w = jax.random.uniform(key2, (3,), minval=-jnp.pi, maxval=jnp.pi)
    return se3.from_position_and_rotation(p, so3.exp(w))


def test_so3_exp_identity():
    """Test SO(3) exp with zero vector gives identity."""
    R = so3.exp(jnp.zeros(3))
    np.testing.assert_allclose(R, jnp.eye(3), rtol=1e-12, atol=1e-12)


def test_so3_exp_quarter_turn():
    """A quarter turn about z maps x onto y."""
    R = so3.exp(jnp.array([0.0, 0.0, jnp.pi / 2]))
    np.testing.assert_allclose(so3.apply(R, jnp.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12)


def test_from_rpy_matches_axis_rotations():
    """Fixed-axis roll-pitch-yaw composes as Rz @ Ry @ Rx."""
    roll, pitch, yaw = 0.1, -0.4, 0.7
    R = so3.from_rpy(jnp.array([roll, pitch, yaw]))
    expected = (so3.exp(jnp.array([0.0, 0.0, yaw]))
                @ so3.exp(jnp.array([0.0, pitch, 0.0]))
                @ so3.exp(jnp.array([roll, 0.0, 0.0])))
    np.testing.assert_allclose(R, expected, atol=1e-12)


def test_skew_symmetric_is_cross_product():
    """skew(a) @ b equals a x b."""
    a = jnp.array([0.3, -1.2, 2.0])
    b = jnp.array([-0.7, 0.4, 1.1])
    np.testing.assert_allclose(so3.skew_symmetric(a) @ b, jnp.cross(a, b), atol=1e-12)


def test_so3_inverse():
    """Test SO(3) inverse."""
    R = so3.exp(jnp.array([0.1, 0.2, 0.3]))
    np.testing.assert_allclose(so3.multiply(R, so3.inverse(R)), jnp.eye(3), atol=1e-12)


def test_transform_compose():
    """Test composition of transforms."""
    t1 = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]), jnp.eye(3))
    R_z90 = so3.exp(jnp.array([0.0, 0.0, jnp.pi / 2]))
    t2 = se3.from_position_and_rotation(jnp.array([0.0, 1.0, 0.0]), R_z90)

    result = se3.multiply(t1, t2)
    transformed = se3.apply(result, jnp.array([1.0, 0.0, 0.0]))

    np.testing.assert_allclose(transformed, [1.0, 2.0, 0.0], rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(se3.get_position(result), [1.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(result), R_z90, atol=1e-12)


def test_se3_exp_pure_rotation_and_translation():
    """Revolute and prismatic twists produce the expected motions."""
    T_rot = se3.exp(jnp.array([0.0, 0.0, 0.0, 0.0, 0.5, 0.0]))
    np.testing.assert_allclose(se3.get_position(T_rot), np.zeros(3), atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T_rot), so3.exp(jnp.array([0.0, 0.5, 0.0])), atol=1e-12)

    T_lin = se3.exp(jnp.array([0.0, -0.25, 0.0, 0.0, 0.0, 0.0]))
    np.testing.assert_allclose(se3.get_position(T_lin), [0.0, -0.25, 0.0], atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T_lin), jnp.eye(3), atol=1e-12)


def test_se3_exp_batched():
    """Batched twists give batched transforms."""
    twists = jnp.array([
        [0.1, 0.0, 0.0, 0.0, 0.0, 0.3],
        [0.0, 0.2, 0.0, 0.4, 0.0, 0.0],
    ])
    T = se3.exp(twists)
    assert T.shape == (2, 4, 4)
    np.testing.assert_allclose(T[1], se3.exp(twists[1]), atol=1e-12)


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_transform_inverse_property(seed):
    """Test that T * T^-1 = Identity with explicit key generation."""
    T = _random_transform(jax.random.PRNGKey(seed))
    np.testing.assert_allclose(se3.multiply(T, se3.inverse(T)), jnp.eye(4), atol=1e-9)


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_adjoint_of_inverse(seed):
    """Ad(T^-1) is the matrix inverse of Ad(T)."""
    T = _random_transform(jax.random.PRNGKey(seed))
    np.testing.assert_allclose(se3.adjoint(se3.inverse(T)) @ se3.adjoint(T), jnp.eye(6), atol=1e-9)


def test_adjoint_preserves_power():
    """A wrench mapped with Ad^T does the same work on the mapped twist."""
    T = _random_transform(jax.random.PRNGKey(3))
    twist = jnp.array([0.2, -0.1, 0.4, 0.3, 0.0, -0.5])
    wrench = jnp.array([1.0, 2.0, -0.5, 0.1, -0.3, 0.2])

    twist_parent = se3.adjoint(T) @ twist
    wrench_child = se3.adjoint(T).T @ wrench
    np.testing.assert_allclose(jnp.dot(wrench, twist_parent), jnp.dot(wrench_child, twist), atol=1e-12)


def test_ad_bracket():
    """ad(V) V vanishes and ad(V1) V2 == -ad(V2) V1."""
    V1 = jnp.array([0.2, -0.1, 0.4, 0.3, 0.0, -0.5])
    V2 = jnp.array([-0.6, 0.5, 0.1, 0.0, 0.7, 0.2])
    np.testing.assert_allclose(se3.ad(V1) @ V1, np.zeros(6), atol=1e-12)
    np.testing.assert_allclose(se3.ad(V1) @ V2, -se3.ad(V2) @ V1, atol=1e-12)
    # Angular part is the cross product of the angular velocities
    np.testing.assert_allclose((se3.ad(V1) @ V2)[3:], jnp.cross(V1[3:], V2[3:]), atol=1e-12)
