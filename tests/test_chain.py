"""Tests for forward kinematics over the full robot tree."""

from pathlib import Path

import jax
import jax.numpy as jnp
import numpy as np

from jax_dynamics.chain import forward_kinematics, forward_kinematics_world
from jax_dynamics.io import load_urdf

FIXTURES = Path(__file__).parent / "fixtures"


def _assert_valid_se3(T):
    np.testing.assert_allclose(T[3, :], jnp.array([0, 0, 0, 1]), rtol=1e-9, atol=1e-9)
    R = T[:3, :3]
    np.testing.assert_allclose(jnp.matmul(R, R.T), jnp.eye(3), rtol=1e-9, atol=1e-9)


def test_fk_zero_configuration():
    """At zero configuration the planar arm lies along x."""
    robot = load_urdf(str(FIXTURES / "planar_arm.urdf"))

    poses = forward_kinematics(robot, jnp.zeros(len(robot.joint_names)))

    assert len(poses) == len(robot.link_names)
    for link_name in robot.link_names:
        assert poses[link_name].shape == (4, 4)
        _assert_valid_se3(poses[link_name])

    np.testing.assert_allclose(poses["link2"][:3, 3], [0.5, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(poses["link3"][:3, 3], [1.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(poses["tool"][:3, 3], [1.3, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(poses["finger_left"][:3, 3], [1.3, 0.02, 0.0], atol=1e-12)


def test_fk_planar_configuration():
    """Rotations about y keep the arm in the x-z plane."""
    robot = load_urdf(str(FIXTURES / "planar_arm.urdf"))
    q = jnp.array([0.3, -0.5, 0.8, 0.0, 0.0])

    poses = forward_kinematics(robot, q)

    # Rotating +x about +y by theta gives (cos theta, 0, -sin theta)
    def direction(theta):
        return np.array([np.cos(theta), 0.0, -np.sin(theta)])

    expected_tool = (0.5 * direction(0.3) + 0.5 * direction(-0.2) + 0.3 * direction(0.6))
    np.testing.assert_allclose(poses["tool"][:3, 3], expected_tool, atol=1e-12)
    assert abs(poses["tool"][1, 3]) < 1e-12


def test_fk_prismatic_finger():
    """The mimicking finger moves along its own (negative y) axis."""
    robot = load_urdf(str(FIXTURES / "planar_arm.urdf"))
    q = jnp.array([0.0, 0.0, 0.0, 0.01, 0.01])

    poses = forward_kinematics(robot, q)

    np.testing.assert_allclose(poses["finger_left"][:3, 3], [1.3, 0.03, 0.0], atol=1e-12)
    np.testing.assert_allclose(poses["finger_right"][:3, 3], [1.3, -0.03, 0.0], atol=1e-12)


def test_fk_jit_compatibility():
    """Test that forward kinematics is JIT-compilable inside another function."""
    robot = load_urdf(str(FIXTURES / "planar_arm.urdf"))

    @jax.jit
    def tool_position(q):
        return forward_kinematics_world(robot, q)[robot.link_names.index("tool"), :3, 3]

    q = jnp.array([0.1, -0.2, 0.3, 0.0, 0.0])
    position = tool_position(q)
    assert position.shape == (3,)

    world_transforms = forward_kinematics_world(robot, q)
    for i in range(len(robot.link_names)):
        _assert_valid_se3(world_transforms[i])
