"""Tests for RobotState positions and frame transforms."""

from pathlib import Path

import numpy as np
import pytest

from jax_dynamics.io import load_srdf, load_urdf, parse_urdf
from jax_dynamics.state import RobotState

FIXTURES = Path(__file__).parent / "fixtures"


def _load_arm():
    return load_srdf(str(FIXTURES / "planar_arm.srdf"), load_urdf(str(FIXTURES / "planar_arm.urdf")))


def test_default_values():
    """Joints default to zero when their bounds allow it."""
    state = RobotState(_load_arm())
    np.testing.assert_allclose(state.positions, np.zeros(5))


def test_default_values_outside_bounds():
    """Joints whose range excludes zero default to mid-range."""
    robot = parse_urdf("""
    <robot name="offset">
      <link name="a"/>
      <link name="b"/>
      <joint name="j" type="revolute">
        <parent link="a"/>
        <child link="b"/>
        <axis xyz="0 0 1"/>
        <limit lower="0.5" upper="1.5" effort="1" velocity="1"/>
      </joint>
    </robot>
    """)
    assert RobotState(robot).get_joint_positions() == {"j": pytest.approx(1.0)}


def test_set_group_positions_and_frames():
    """Group positions drive the frame transforms of its links."""
    robot = _load_arm()
    state = RobotState(robot)

    state.set_joint_group_positions(robot.get_joint_group("arm"), [0.0, np.pi / 2, 0.0])

    np.testing.assert_allclose(state.get_frame_transform("base_link"), np.eye(4), atol=1e-12)
    np.testing.assert_allclose(state.get_frame_transform("link3")[:3, 3], [0.5, 0.0, -0.5], atol=1e-12)
    np.testing.assert_allclose(state.get_frame_transform("tool")[:3, 3], [0.5, 0.0, -0.8], atol=1e-12)

    with pytest.raises(ValueError, match="expects 3 values"):
        state.set_joint_group_positions(robot.get_joint_group("arm"), [0.0, 0.0])


def test_mimic_joint_follows_source():
    """Setting the left finger moves the mimicking right finger."""
    robot = _load_arm()
    state = RobotState(robot)

    state.set_joint_group_positions(robot.get_joint_group("gripper"), [0.015])

    positions = state.get_joint_positions()
    assert positions["finger_left_joint"] == pytest.approx(0.015)
    assert positions["finger_right_joint"] == pytest.approx(0.015)
    np.testing.assert_allclose(state.get_frame_transform("finger_right")[:3, 3],
                               [1.3, -0.035, 0.0], atol=1e-12)

    with pytest.raises(ValueError, match="mimic joint"):
        state.set_joint_positions({"finger_right_joint": 0.01})


def test_frame_cache_invalidated_on_update():
    """Frame transforms reflect the latest positions."""
    robot = _load_arm()
    state = RobotState(robot)

    before = state.get_frame_transform("tool")
    state.set_joint_positions({"joint1": 0.4})
    after = state.get_frame_transform("tool")

    assert not np.allclose(before, after)
    with pytest.raises(ValueError, match="Link 'ghost' not found"):
        state.get_frame_transform("ghost")


def test_copy_is_independent():
    """Updating a copy leaves the original untouched."""
    state = RobotState(_load_arm())
    original_tool = state.get_frame_transform("tool")

    other = state.copy()
    other.set_joint_positions({"joint2": -0.7})

    np.testing.assert_allclose(state.positions, np.zeros(5))
    np.testing.assert_allclose(state.get_frame_transform("tool"), original_tool)
    assert other.get_joint_positions()["joint2"] == pytest.approx(-0.7)
