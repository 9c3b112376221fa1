"""RobotModel PyTree data structure for JAX-native robot representation.

This module defines the core data structure for representing robots in a
stateless, immutable format that is fully compatible with JAX transformations.
Besides the kinematic tree it carries the inertial parameters of every link,
per-joint metadata (limits, mimic coupling) and the semantic joint groups
declared for the robot.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from flax import struct
from jax import Array

from .joint_group import JointGroup


@dataclass(frozen=True)
class JointInfo:
    """Static description of a single URDF joint.

    Attributes:
        name: Joint name.
        type: URDF joint type ('revolute', 'continuous', 'prismatic', 'fixed', ...).
        parent_link: Name of the parent link, or None for a joint that is not
                     attached to any link of the model.
        child_link: Name of the child link.
        lower: Lower position bound, None when the joint is unbounded.
        upper: Upper position bound, None when the joint is unbounded.
        effort: Rated maximum effort, None when no <limit> is declared.
        mimic: Name of the joint this one follows, None for independent joints.
        mimic_multiplier: Factor applied to the followed joint's position.
        mimic_offset: Offset added to the followed joint's position.
    """
    name: str
    type: str
    parent_link: Optional[str]
    child_link: str
    lower: Optional[float] = None
    upper: Optional[float] = None
    effort: Optional[float] = None
    mimic: Optional[str] = None
    mimic_multiplier: float = 1.0
    mimic_offset: float = 0.0

    @property
    def is_fixed(self) -> bool:
        return self.type == 'fixed'

    @property
    def is_mimic(self) -> bool:
        return self.mimic is not None


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a robot's kinematic and inertial structure.

    This dataclass represents a robot as a flattened tree structure using
    integer indices for parent-child relationships. All numeric data is
    stored in JAX arrays for high-performance computation.

    Attributes:
        link_names: Tuple of all link names. Index corresponds to link ID.
                    Marked as a static field for JIT compilation.
        joint_names: Tuple of all actuated (non-fixed) joint names.
                     Marked as a static field for JIT compilation.
        joints: Tuple of JointInfo for every joint, fixed ones included.
        groups: Tuple of semantic JointGroups declared for the robot.
        parent_indices: Array of shape (num_links,) where parent_indices[i]
                       is the parent link index of link i. Root link parents itself.
        joint_transforms: Array of shape (num_links, 4, 4) containing SE(3)
                         transformations from each link to its parent.
        joint_axes: Array of shape (num_links, 6) containing 6D se(3) twist
                   vectors for each joint. [vx,vy,vz,wx,wy,wz] format.
        actuated_joint_to_link_idx: Array of shape (num_dof,) giving the link
                   index driven by each entry of joint_names.
        link_masses: Array of shape (num_links,) with link masses in kg.
        link_coms: Array of shape (num_links, 3) with link centres of mass,
                   expressed in the link frame.
        link_inertias: Array of shape (num_links, 3, 3) with rotational
                   inertia about the centre of mass, in link-frame axes.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joints: Tuple[JointInfo, ...] = struct.field(pytree_node=False)
    groups: Tuple[JointGroup, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_joint_to_link_idx: Array
    link_masses: Array
    link_coms: Array
    link_inertias: Array

    @property
    def root_link(self) -> str:
        return self.link_names[0]

    def link_index(self, link_name: str) -> int:
        try:
            return self.link_names.index(link_name)
        except ValueError:
            raise ValueError(f"Link '{link_name}' not found in robot model")

    def has_link(self, link_name: str) -> bool:
        return link_name in self.link_names

    def joint(self, joint_name: str) -> JointInfo:
        for info in self.joints:
            if info.name == joint_name:
                return info
        raise ValueError(f"Joint '{joint_name}' not found in robot model")

    def joint_by_child(self, link_name: str) -> Optional[JointInfo]:
        """Return the joint whose child is `link_name`, None for the root link."""
        for info in self.joints:
            if info.child_link == link_name:
                return info
        return None

    def has_joint_group(self, group_name: str) -> bool:
        return any(group.name == group_name for group in self.groups)

    def get_joint_group(self, group_name: str) -> JointGroup:
        for group in self.groups:
            if group.name == group_name:
                return group
        raise ValueError(f"Group '{group_name}' not found in robot model")
