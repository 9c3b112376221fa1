"""Semantic joint groups (the SRDF notion of a planning group).

A group is a named set of joints plus the links they move. Structural
queries (roots, chain shape, mimic joints) are answered against the
RobotModel the group was declared for.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from .robot_model import JointInfo, RobotModel


@dataclass(frozen=True)
class JointGroup:
    """Named group of joints.

    Attributes:
        name: Group name.
        joint_names: All joints of the group, fixed ones included, in tree order.
        link_names: Links moved by the group in tree order; the last entry is
                    the group's tip.
    """
    name: str
    joint_names: Tuple[str, ...]
    link_names: Tuple[str, ...]

    def joint_models(self, robot: "RobotModel") -> List["JointInfo"]:
        return [robot.joint(name) for name in self.joint_names]

    def active_joint_names(self, robot: "RobotModel") -> Tuple[str, ...]:
        """Joints that carry an independent position variable."""
        return tuple(
            info.name for info in self.joint_models(robot)
            if not info.is_fixed and not info.is_mimic
        )

    def mimic_joints(self, robot: "RobotModel") -> List["JointInfo"]:
        return [info for info in self.joint_models(robot) if info.is_mimic]

    def joint_roots(self, robot: "RobotModel") -> List["JointInfo"]:
        """Joints whose parent link is not moved by another joint of the group."""
        joints = self.joint_models(robot)
        children = {info.child_link for info in joints}
        return [info for info in joints if info.parent_link not in children]

    def is_chain(self, robot: "RobotModel") -> bool:
        """True when the joints form one unbranched path from a single root."""
        joints = self.joint_models(robot)
        roots = self.joint_roots(robot)
        if len(roots) != 1:
            return False

        visited = 1
        current = roots[0]
        while True:
            next_joints = [info for info in joints if info.parent_link == current.child_link]
            if not next_joints:
                break
            if len(next_joints) > 1:
                return False
            current = next_joints[0]
            visited += 1

        return visited == len(joints)
