"""URDF parser for loading robot models into JAX-native data structures.

This module provides functionality to parse URDF files and convert them
into RobotModel PyTree structures, including the inertial parameters and
joint limits needed for dynamics.
"""

from collections import deque
from typing import Dict, List, Optional, Union

import jax.numpy as jnp
import numpy as np
from lxml import etree

from jax_dynamics.core.robot_model import JointInfo, RobotModel
from jax_dynamics.transforms import se3, so3


def load_urdf(urdf_path: str) -> RobotModel:
    """Load a URDF file and convert it to a RobotModel PyTree.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        RobotModel: A JAX-native robot representation without joint groups.
    """
    tree = etree.parse(urdf_path)
    return _build_robot_model(tree.getroot())


def parse_urdf(urdf_text: Union[str, bytes]) -> RobotModel:
    """Parse a URDF document held in memory."""
    if isinstance(urdf_text, str):
        urdf_text = urdf_text.encode('utf-8')
    return _build_robot_model(etree.fromstring(urdf_text))


def _build_robot_model(root) -> RobotModel:
    # First pass: topology
    all_links = []
    child_to_parent_map: Dict[str, str] = {}
    child_links = set()

    for link in root.findall('link'):
        all_links.append(link.get('name'))

    joints_info = []
    for joint in root.findall('joint'):
        parent_elem = joint.find('parent')
        child_elem = joint.find('child')
        if parent_elem is None or child_elem is None:
            raise ValueError(f"Joint '{joint.get('name')}' must declare a parent and a child link")

        parent_name = parent_elem.get('link')
        child_name = child_elem.get('link')
        for link_name in (parent_name, child_name):
            if link_name not in all_links:
                raise ValueError(f"Joint '{joint.get('name')}' references unknown link '{link_name}'")
        if child_name in child_links:
            raise ValueError(f"Link '{child_name}' has more than one parent joint")

        child_to_parent_map[child_name] = parent_name
        child_links.add(child_name)
        joints_info.append(_parse_joint(joint, parent_name, child_name))

    # Find root link (not a child of any joint)
    root_links = [name for name in all_links if name not in child_links]
    if len(root_links) != 1:
        raise ValueError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links[0]

    # Order links using breadth-first traversal from root
    ordered_links: List[str] = []
    queue = deque([root_link])
    visited = set()

    while queue:
        current_link = queue.popleft()
        if current_link in visited:
            continue

        visited.add(current_link)
        ordered_links.append(current_link)

        for info in joints_info:
            if info.parent_link == current_link and info.child_link not in visited:
                queue.append(info.child_link)

    if len(ordered_links) != len(all_links):
        unreachable = sorted(set(all_links) - visited)
        raise ValueError(f"Links not connected to root '{root_link}': {unreachable}")

    link_map = {name: i for i, name in enumerate(ordered_links)}
    inertials = {link.get('name'): _parse_inertial(link) for link in root.findall('link')}

    joint_by_child = {info.child_link: (info, elem) for info, elem in
                      zip(joints_info, root.findall('joint'))}

    # Second pass: populate data arrays in link order
    parent_indices_list = []
    joint_transforms_list = []
    joint_axes_list = []
    masses, coms, inertias = [], [], []

    for i, link_name in enumerate(ordered_links):
        if link_name == root_link:
            parent_indices_list.append(i)  # Root parents itself
        else:
            parent_indices_list.append(link_map[child_to_parent_map[link_name]])

        if link_name in joint_by_child:
            info, joint_elem = joint_by_child[link_name]
            joint_transforms_list.append(_parse_origin(joint_elem.find('origin')))
            joint_axes_list.append(_parse_axis(joint_elem, info.type))
        else:
            joint_transforms_list.append(np.eye(4))
            joint_axes_list.append(np.zeros(6))

        mass, com, inertia = inertials[link_name]
        masses.append(mass)
        coms.append(com)
        inertias.append(inertia)

    # Actuated joints keep document order
    actuated_joint_names = [info.name for info in joints_info if not info.is_fixed]
    actuated_link_idx = [link_map[info.child_link] for info in joints_info if not info.is_fixed]

    return RobotModel(
        link_names=tuple(ordered_links),
        joint_names=tuple(actuated_joint_names),
        joints=tuple(joints_info),
        groups=(),
        parent_indices=jnp.array(parent_indices_list, dtype=jnp.int32),
        joint_transforms=jnp.asarray(np.stack(joint_transforms_list)),
        joint_axes=jnp.asarray(np.stack(joint_axes_list)),
        actuated_joint_to_link_idx=jnp.array(actuated_link_idx, dtype=jnp.int32),
        link_masses=jnp.asarray(np.array(masses, dtype=np.float64)),
        link_coms=jnp.asarray(np.stack(coms)),
        link_inertias=jnp.asarray(np.stack(inertias)),
    )


def _parse_joint(joint_elem, parent_name: str, child_name: str) -> JointInfo:
    joint_type = joint_elem.get('type')
    lower = upper = effort = None

    limit_elem = joint_elem.find('limit')
    if limit_elem is not None:
        effort = _optional_float(limit_elem.get('effort'))
        if joint_type != 'continuous':
            lower = _optional_float(limit_elem.get('lower'))
            upper = _optional_float(limit_elem.get('upper'))

    mimic = None
    multiplier, offset = 1.0, 0.0
    mimic_elem = joint_elem.find('mimic')
    if mimic_elem is not None:
        mimic = mimic_elem.get('joint')
        multiplier = float(mimic_elem.get('multiplier', '1.0'))
        offset = float(mimic_elem.get('offset', '0.0'))

    return JointInfo(
        name=joint_elem.get('name'),
        type=joint_type,
        parent_link=parent_name,
        child_link=child_name,
        lower=lower,
        upper=upper,
        effort=effort,
        mimic=mimic,
        mimic_multiplier=multiplier,
        mimic_offset=offset,
    )


def _parse_origin(origin_elem) -> np.ndarray:
    if origin_elem is None:
        return np.eye(4)

    xyz = _parse_vector(origin_elem.get('xyz', '0 0 0'))
    rpy = _parse_vector(origin_elem.get('rpy', '0 0 0'))

    R = so3.from_rpy(jnp.asarray(rpy))
    return np.asarray(se3.from_position_and_rotation(jnp.asarray(xyz), R))


def _parse_axis(joint_elem, joint_type: str) -> np.ndarray:
    if joint_type == 'fixed':
        return np.zeros(6)

    axis_elem = joint_elem.find('axis')
    if axis_elem is not None:
        axis_xyz = _parse_vector(axis_elem.get('xyz', '1 0 0'))
    else:
        axis_xyz = np.array([1.0, 0.0, 0.0])  # URDF default axis

    norm = np.linalg.norm(axis_xyz)
    if norm > 0.0:
        axis_xyz = axis_xyz / norm

    if joint_type in ('revolute', 'continuous'):
        # Revolute: [0, 0, 0, wx, wy, wz]
        return np.concatenate([np.zeros(3), axis_xyz])
    elif joint_type == 'prismatic':
        # Prismatic: [vx, vy, vz, 0, 0, 0]
        return np.concatenate([axis_xyz, np.zeros(3)])
    return np.zeros(6)


def _parse_inertial(link_elem):
    """Return (mass, com, inertia about com in link axes) for a link."""
    inertial_elem = link_elem.find('inertial')
    if inertial_elem is None:
        return 0.0, np.zeros(3), np.zeros((3, 3))

    mass_elem = inertial_elem.find('mass')
    mass = float(mass_elem.get('value', '0')) if mass_elem is not None else 0.0

    origin_elem = inertial_elem.find('origin')
    origin = _parse_origin(origin_elem)
    com = origin[:3, 3]
    R = origin[:3, :3]

    inertia = np.zeros((3, 3))
    inertia_elem = inertial_elem.find('inertia')
    if inertia_elem is not None:
        ixx, ixy, ixz, iyy, iyz, izz = (
            float(inertia_elem.get(key, '0'))
            for key in ('ixx', 'ixy', 'ixz', 'iyy', 'iyz', 'izz')
        )
        inertia = np.array([
            [ixx, ixy, ixz],
            [ixy, iyy, iyz],
            [ixz, iyz, izz],
        ])

    # URDF inertia is given in the inertial frame; rotate it into link axes
    return mass, com, R @ inertia @ R.T


def _parse_vector(text: str) -> np.ndarray:
    return np.array([float(x) for x in text.split()])


def _optional_float(text: Optional[str]) -> Optional[float]:
    return float(text) if text is not None else None
