"""Mutable joint-space state of a full robot, with frame transform lookup."""

import logging
from typing import Dict, Mapping, Sequence

import numpy as np

from .chain import forward_kinematics_world
from .core import JointGroup, RobotModel

logger = logging.getLogger(__name__)


class RobotState:
    """Positions of every actuated joint of a robot.

    Mimic joints are never set directly; they follow the joint they mimic
    whenever positions change. Link world transforms are computed lazily and
    cached until the next position update.
    """

    def __init__(self, robot: RobotModel):
        self.robot = robot
        self._index = {name: i for i, name in enumerate(robot.joint_names)}
        self._positions = np.zeros(len(robot.joint_names))
        self._world_transforms = None
        self.set_to_default_values()

    @property
    def positions(self) -> np.ndarray:
        return self._positions.copy()

    def set_to_default_values(self) -> None:
        """Zero for every joint whose bounds admit it, mid-range otherwise."""
        for name, i in self._index.items():
            info = self.robot.joint(name)
            value = 0.0
            if info.lower is not None and info.upper is not None:
                if not info.lower <= 0.0 <= info.upper:
                    value = 0.5 * (info.lower + info.upper)
            self._positions[i] = value
        self._update_mimic()

    def set_joint_positions(self, positions: Mapping[str, float]) -> None:
        for name, value in positions.items():
            if name not in self._index:
                raise ValueError(f"Joint '{name}' is not an actuated joint of the robot")
            if self.robot.joint(name).is_mimic:
                raise ValueError(f"Joint '{name}' is a mimic joint and cannot be set directly")
            self._positions[self._index[name]] = float(value)
        self._update_mimic()

    def set_joint_group_positions(self, group: JointGroup, values: Sequence[float]) -> None:
        """Set the group's active joints, in group order."""
        names = group.active_joint_names(self.robot)
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (len(names),):
            raise ValueError(f"Group '{group.name}' expects {len(names)} values, got {values.shape}")
        self.set_joint_positions(dict(zip(names, values)))

    def get_joint_positions(self) -> Dict[str, float]:
        return {name: float(self._positions[i]) for name, i in self._index.items()}

    def get_frame_transform(self, link_name: str) -> np.ndarray:
        """World pose of `link_name` as a (4, 4) homogeneous matrix."""
        link_idx = self.robot.link_index(link_name)
        if self._world_transforms is None:
            self._world_transforms = np.asarray(
                forward_kinematics_world(self.robot, self._positions))
        return self._world_transforms[link_idx].copy()

    def copy(self) -> "RobotState":
        other = RobotState.__new__(RobotState)
        other.robot = self.robot
        other._index = self._index
        other._positions = self._positions.copy()
        other._world_transforms = self._world_transforms
        return other

    def _update_mimic(self) -> None:
        for name, i in self._index.items():
            info = self.robot.joint(name)
            if info.is_mimic:
                if info.mimic not in self._index:
                    logger.warning(f"Mimic joint '{name}' follows unknown joint '{info.mimic}'")
                    continue
                source = self._positions[self._index[info.mimic]]
                self._positions[i] = info.mimic_multiplier * source + info.mimic_offset
        self._world_transforms = None
