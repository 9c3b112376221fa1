"""SRDF parser for attaching semantic joint groups to a RobotModel.

Supported group members: <chain base_link tip_link/>, <joint name/>,
<link name/> (contributes the joint that moves it) and nested <group name/>
references. Groups are resolved against the RobotModel and returned as a new
model; the input model is left unchanged.
"""

from typing import Dict, List, Set, Union

from lxml import etree

from jax_dynamics.core.joint_group import JointGroup
from jax_dynamics.core.robot_model import RobotModel


def load_srdf(srdf_path: str, robot: RobotModel) -> RobotModel:
    """Load an SRDF file and return `robot` with its groups attached.

    Args:
        srdf_path: Path to the SRDF file.
        robot: Model loaded from the matching URDF.

    Returns:
        RobotModel: Copy of `robot` whose `groups` holds every SRDF group.
    """
    tree = etree.parse(srdf_path)
    return _attach_groups(tree.getroot(), robot)


def parse_srdf(srdf_text: Union[str, bytes], robot: RobotModel) -> RobotModel:
    """Parse an SRDF document held in memory."""
    if isinstance(srdf_text, str):
        srdf_text = srdf_text.encode('utf-8')
    return _attach_groups(etree.fromstring(srdf_text), robot)


def _attach_groups(root, robot: RobotModel) -> RobotModel:
    group_elems = {elem.get('name'): elem for elem in root.findall('group')}

    resolved: Dict[str, Set[str]] = {}
    for name in group_elems:
        _resolve_group(name, group_elems, robot, resolved, stack=[])

    groups = tuple(_make_group(name, resolved[name], robot) for name in group_elems)
    return robot.replace(groups=groups)


def _resolve_group(name: str, group_elems, robot: RobotModel,
                   resolved: Dict[str, Set[str]], stack: List[str]) -> Set[str]:
    if name in resolved:
        return resolved[name]
    if name not in group_elems:
        raise ValueError(f"Group '{name}' is referenced but never defined")
    if name in stack:
        raise ValueError(f"Group '{name}' includes itself: {' -> '.join(stack + [name])}")

    joint_names: Set[str] = set()
    for member in group_elems[name]:
        if member.tag == 'chain':
            joint_names.update(_chain_joints(robot, member.get('base_link'), member.get('tip_link')))
        elif member.tag == 'joint':
            joint_names.add(robot.joint(member.get('name')).name)
        elif member.tag == 'link':
            robot.link_index(member.get('name'))
            parent_joint = robot.joint_by_child(member.get('name'))
            if parent_joint is not None:
                joint_names.add(parent_joint.name)
        elif member.tag == 'group':
            joint_names.update(_resolve_group(member.get('name'), group_elems, robot,
                                              resolved, stack + [name]))

    resolved[name] = joint_names
    return joint_names


def _chain_joints(robot: RobotModel, base_link: str, tip_link: str) -> List[str]:
    """Joints on the path from `base_link` down to `tip_link`, base first."""
    robot.link_index(base_link)
    robot.link_index(tip_link)

    path = []
    current = tip_link
    while current != base_link:
        joint = robot.joint_by_child(current)
        if joint is None:
            raise ValueError(f"Link '{base_link}' is not an ancestor of '{tip_link}'")
        path.append(joint.name)
        current = joint.parent_link
    return list(reversed(path))


def _make_group(name: str, joint_names: Set[str], robot: RobotModel) -> JointGroup:
    # Tree order: sort by the index of the link each joint moves
    joints = sorted((robot.joint(j) for j in joint_names),
                    key=lambda info: robot.link_index(info.child_link))
    return JointGroup(
        name=name,
        joint_names=tuple(info.name for info in joints),
        link_names=tuple(info.child_link for info in joints),
    )
