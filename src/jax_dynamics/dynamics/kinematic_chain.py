"""Serial chains extracted from a robot's kinematic tree.

A chain is the ordered list of segments between a base link and a tip link.
Every joint on the path contributes one segment (fixed joints included); a
segment carries the joint origin in its parent frame, the joint's twist axis
and the spatial inertia of the link it moves, expressed in that link's frame.
"""

import logging
from typing import List, Tuple

import jax.numpy as jnp
import numpy as np
from flax import struct
from jax import Array

from jax_dynamics.core import RobotModel
from jax_dynamics.transforms import so3

logger = logging.getLogger(__name__)


class ChainError(ValueError):
    """Raised when a tree or a chain cannot be built from a robot model."""


@struct.dataclass
class SerialChain:
    """Immutable base-to-tip chain description.

    Attributes:
        base_link: Link the chain is anchored to.
        tip_link: Last link of the chain.
        segment_names: Child link of each segment, base first.
        joint_names: Movable joints of the chain, base first.
        origins: (num_segments, 4, 4) joint origins in the parent segment frame.
        axes: (num_segments, 6) joint twist axes; zero for fixed joints.
        inertias: (num_segments, 6, 6) spatial inertias about each segment frame.
        movable_segments: (num_joints,) segment index of each movable joint.
    """
    base_link: str = struct.field(pytree_node=False)
    tip_link: str = struct.field(pytree_node=False)
    segment_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    origins: Array
    axes: Array
    inertias: Array
    movable_segments: Array

    @property
    def joint_count(self) -> int:
        return len(self.joint_names)

    @property
    def segment_count(self) -> int:
        return len(self.segment_names)


def spatial_inertia(mass, com, inertia) -> Array:
    """6x6 spatial inertia about a frame origin, for [v, w] twists.

    Args:
        mass: Body mass.
        com: (3,) centre of mass in the frame.
        inertia: (3, 3) rotational inertia about the centre of mass.

    Returns:
        [[m I, -m [c]], [m [c], I_c - m [c][c]]]
    """
    com = jnp.asarray(com)
    c = so3.skew_symmetric(com)
    top = jnp.concatenate([mass * jnp.eye(3, dtype=com.dtype), -mass * c], axis=-1)
    bottom = jnp.concatenate([mass * c, jnp.asarray(inertia) - mass * c @ c], axis=-1)
    return jnp.concatenate([top, bottom], axis=-2)


class KinematicTree:
    """Tree view of a RobotModel from which serial chains are extracted."""

    def __init__(self, robot: RobotModel):
        self.robot = robot

    @property
    def root_link(self) -> str:
        return self.robot.root_link

    def get_chain(self, base_link: str, tip_link: str) -> SerialChain:
        """Extract the chain running from `base_link` down to `tip_link`.

        Raises:
            ChainError: If either link is unknown or `base_link` is not an
                        ancestor of `tip_link`.
        """
        robot = self.robot
        for link_name in (base_link, tip_link):
            if not robot.has_link(link_name):
                raise ChainError(f"Link '{link_name}' not found in tree")

        path: List[int] = []
        current = robot.link_index(tip_link)
        base_idx = robot.link_index(base_link)
        while current != base_idx:
            parent = int(robot.parent_indices[current])
            if parent == current:
                raise ChainError(f"Link '{base_link}' is not an ancestor of '{tip_link}'")
            path.append(current)
            current = parent
        path.reverse()

        segment_names, joint_names, movable = [], [], []
        for segment_idx, link_idx in enumerate(path):
            link_name = robot.link_names[link_idx]
            segment_names.append(link_name)
            joint = robot.joint_by_child(link_name)
            if not joint.is_fixed:
                joint_names.append(joint.name)
                movable.append(segment_idx)

        idx = np.array(path, dtype=np.int32)
        if len(path):
            inertias = jnp.stack([
                spatial_inertia(robot.link_masses[i], robot.link_coms[i], robot.link_inertias[i])
                for i in path
            ])
        else:
            inertias = jnp.zeros((0, 6, 6))

        return SerialChain(
            base_link=base_link,
            tip_link=tip_link,
            segment_names=tuple(segment_names),
            joint_names=tuple(joint_names),
            origins=robot.joint_transforms[idx],
            axes=robot.joint_axes[idx],
            inertias=inertias,
            movable_segments=jnp.array(movable, dtype=jnp.int32),
        )


def build_tree(robot: RobotModel) -> KinematicTree:
    """Build a KinematicTree from a robot model.

    Raises:
        ChainError: If the model has no links.
    """
    if not robot.link_names:
        raise ChainError("Robot model has no links")
    if float(robot.link_masses[0]) > 0.0:
        logger.warning(f"The root link '{robot.root_link}' has an inertia specified; "
                       "it is ignored by the dynamics recursion")
    return KinematicTree(robot)
