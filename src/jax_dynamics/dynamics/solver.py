"""Joint torques and payload capacity for a serial joint group.

`DynamicsSolver` validates a joint group once, binds an inverse dynamics
engine to the chain it spans and then answers queries:

* `compute_torques`: efforts for a joint state and per-segment wrenches;
* `compute_max_payload`: the largest tip mass the chain can hold statically
  and the joint whose effort limit it saturates;
* `compute_payload_torques`: efforts needed to hold a given tip mass;
* `get_max_torques`: the per-joint effort limits.

A solver that fails validation stays permanently invalid and every query on it
returns None. Query failures are logged and reported as None as well; output
buffers are written only once a computation has fully succeeded.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Sequence, Union

import jax.numpy as jnp
import numpy as np
from jax import Array

from jax_dynamics.config import DEFAULT_GRAVITY, NEAR_SINGULAR_TOLERANCE
from jax_dynamics.core import JointGroup, RobotModel
from jax_dynamics.state import RobotState
from jax_dynamics.transforms import se3

from .kinematic_chain import ChainError, SerialChain, build_tree
from .rne import DynamicsEngineError, InverseDynamicsEngine, RecursiveNewtonEuler

logger = logging.getLogger(__name__)

EngineFactory = Callable[[SerialChain, Array], InverseDynamicsEngine]


class PayloadLimit(NamedTuple):
    """Maximum static payload at a configuration.

    Attributes:
        payload: Mass in kg that can be held at the tip.
        saturated_joint: Index of the joint whose effort limit is reached first.
    """
    payload: float
    saturated_joint: int


@dataclass(frozen=True)
class _ValidSolver:
    group: JointGroup
    base_name: str
    tip_name: str
    chain: SerialChain
    max_torques: np.ndarray
    gravity_norm: float
    engine: InverseDynamicsEngine
    state: RobotState


class _InvalidSolver:
    def __repr__(self):
        return "<invalid>"


_INVALID = _InvalidSolver()


class DynamicsSolver:
    """Inverse dynamics and payload analysis for one serial joint group.

    Args:
        robot: Robot model carrying the joint group.
        group: Group name, or a JointGroup declared for `robot`.
        gravity_vector: Gravity in the chain base frame; fixed for the
                        lifetime of the solver.
        engine_factory: Builds the inverse dynamics engine from the chain and
                        the gravity vector.
    """

    def __init__(self, robot: RobotModel, group: Union[str, JointGroup],
                 gravity_vector: Sequence[float] = DEFAULT_GRAVITY,
                 engine_factory: EngineFactory = RecursiveNewtonEuler):
        self.robot = robot
        self.group_name = group.name if isinstance(group, JointGroup) else group
        self._solver = self._build(robot, group, gravity_vector, engine_factory)

    @staticmethod
    def _build(robot, group, gravity_vector, engine_factory):
        if not isinstance(group, JointGroup):
            if not robot.has_joint_group(group):
                logger.error(f"Group '{group}' not found in robot model. "
                             "Will not initialize dynamics solver")
                return _INVALID
            group = robot.get_joint_group(group)

        if not group.is_chain(robot):
            logger.error(f"Group '{group.name}' is not a chain. Will not initialize dynamics solver")
            return _INVALID

        if group.mimic_joints(robot):
            logger.error(f"Group '{group.name}' has a mimic joint. Will not initialize dynamics solver")
            return _INVALID

        root_joint = group.joint_roots(robot)[0]
        if root_joint.parent_link is None or not robot.has_link(root_joint.parent_link):
            logger.error(f"Group '{group.name}' does not have a parent link")
            return _INVALID

        base_name = root_joint.parent_link
        tip_name = group.link_names[-1]
        logger.debug(f"Base name: '{base_name}', Tip name: '{tip_name}'")

        try:
            tree = build_tree(robot)
        except ChainError as e:
            logger.error(f"Could not initialize tree object: {e}")
            return _INVALID
        try:
            chain = tree.get_chain(base_name, tip_name)
        except ChainError as e:
            logger.error(f"Could not initialize chain object: {e}")
            return _INVALID

        active_joints = group.active_joint_names(robot)
        if chain.joint_names != active_joints:
            logger.error(f"Chain joints {chain.joint_names} do not match the active joints "
                         f"{active_joints} of group '{group.name}'")
            return _INVALID

        gravity = np.asarray(gravity_vector, dtype=np.float64)
        if gravity.shape != (3,):
            logger.error(f"Gravity vector must have 3 components, got shape {gravity.shape}")
            return _INVALID

        max_torques = []
        for joint_name in active_joints:
            effort = robot.joint(joint_name).effort
            max_torques.append(effort if effort is not None else 0.0)

        gravity_norm = float(np.linalg.norm(gravity))
        logger.debug(f"Gravity norm set to {gravity_norm:f}")

        state = RobotState(robot)

        return _ValidSolver(
            group=group,
            base_name=base_name,
            tip_name=tip_name,
            chain=chain,
            max_torques=np.array(max_torques, dtype=np.float64),
            gravity_norm=gravity_norm,
            engine=engine_factory(chain, jnp.asarray(gravity)),
            state=state,
        )

    # Read-only views

    @property
    def is_valid(self) -> bool:
        return self._solver is not _INVALID

    @property
    def base_name(self) -> Optional[str]:
        return self._solver.base_name if self.is_valid else None

    @property
    def tip_name(self) -> Optional[str]:
        return self._solver.tip_name if self.is_valid else None

    @property
    def joint_count(self) -> int:
        return self._solver.chain.joint_count if self.is_valid else 0

    @property
    def segment_count(self) -> int:
        return self._solver.chain.segment_count if self.is_valid else 0

    @property
    def gravity_norm(self) -> float:
        return self._solver.gravity_norm if self.is_valid else 0.0

    def get_max_torques(self) -> np.ndarray:
        """Per-joint effort limits in chain order; empty for an invalid solver."""
        if not self.is_valid:
            return np.zeros(0)
        return self._solver.max_torques.copy()

    # Queries

    def compute_torques(self, joint_angles, joint_velocities, joint_accelerations,
                        wrenches, out: Optional[np.ndarray] = None) -> Optional[np.ndarray]:
        """Joint efforts for a joint state and external segment wrenches.

        Args:
            joint_angles: (joint_count,) positions.
            joint_velocities: (joint_count,) velocities.
            joint_accelerations: (joint_count,) accelerations.
            wrenches: (segment_count, 6) wrench [fx, fy, fz, tx, ty, tz] acting
                      on each segment, in the segment frame.
            out: Optional (joint_count,) buffer receiving the result.

        Returns:
            The efforts (`out` itself when given), or None on failure.
        """
        solver = self._solver
        if solver is _INVALID:
            logger.debug("Did not construct DynamicsSolver object properly. Check error logs.")
            return None

        num_joints = solver.chain.joint_count
        num_segments = solver.chain.segment_count

        angles = np.asarray(joint_angles, dtype=np.float64)
        if angles.shape != (num_joints,):
            logger.error(f"Joint angles vector should be size {num_joints}")
            return None
        velocities = np.asarray(joint_velocities, dtype=np.float64)
        if velocities.shape != (num_joints,):
            logger.error(f"Joint velocities vector should be size {num_joints}")
            return None
        accelerations = np.asarray(joint_accelerations, dtype=np.float64)
        if accelerations.shape != (num_joints,):
            logger.error(f"Joint accelerations vector should be size {num_joints}")
            return None
        wrench_array = np.asarray(wrenches, dtype=np.float64)
        if wrench_array.shape != (num_segments, 6):
            logger.error(f"Wrenches vector should be size {num_segments}")
            return None
        if out is not None and np.shape(out) != (num_joints,):
            logger.error(f"Torques vector should be size {num_joints}")
            return None

        try:
            torques = np.asarray(solver.engine.solve(angles, velocities, accelerations, wrench_array),
                                 dtype=np.float64)
        except DynamicsEngineError as e:
            logger.error(f"Something went wrong computing torques: {e}")
            return None

        if out is None:
            return torques
        out[:] = torques
        return out

    def compute_max_payload(self, joint_angles) -> Optional[PayloadLimit]:
        """Largest static tip payload at `joint_angles`.

        Joint efforts are affine in the tip force, so two solves suffice: one
        without payload and one with a unit force. Each joint then bounds the
        force by its effort limit in the direction the effort moves, and the
        most constraining joint wins.

        Returns:
            PayloadLimit, or None on failure.
        """
        solver = self._solver
        if solver is _INVALID:
            logger.debug("Did not construct DynamicsSolver object properly. Check error logs.")
            return None

        num_joints = solver.chain.joint_count
        num_segments = solver.chain.segment_count
        angles = np.asarray(joint_angles, dtype=np.float64)
        if angles.shape != (num_joints,):
            logger.error(f"Joint angles vector should be size {num_joints}")
            return None

        zeros = np.zeros(num_joints)
        zero_torques = self.compute_torques(angles, zeros, zeros, np.zeros((num_segments, 6)))
        if zero_torques is None:
            return None

        max_torques = solver.max_torques
        for i in range(num_joints):
            if abs(zero_torques[i]) >= max_torques[i]:
                return PayloadLimit(payload=0.0, saturated_joint=i)

        wrenches = self._tip_wrenches(solver, angles, 1.0)
        torques = self.compute_torques(angles, zeros, zeros, wrenches)
        if torques is None:
            return None

        delta = torques - zero_torques
        with np.errstate(divide='ignore', invalid='ignore'):
            payload_joint = np.maximum((max_torques - zero_torques) / delta,
                                       (-max_torques - zero_torques) / delta)

        min_payload = sys.float_info.max
        saturated_joint = 0
        for i in range(num_joints):
            logger.debug(f"Joint: {i}, Actual Torque: {torques[i]:f}, "
                         f"Max Allowed: {max_torques[i]:f}, Gravity: {zero_torques[i]:f}")
            logger.debug(f"Joint: {i}, Payload Allowed (N): {payload_joint[i]:f}")
            if abs(delta[i]) < NEAR_SINGULAR_TOLERANCE:
                logger.warning(f"Joint {i} effort is nearly insensitive to tip force "
                               f"({delta[i]:g} per N); its payload bound is ill-conditioned")
            if payload_joint[i] < min_payload:
                min_payload = float(payload_joint[i])
                saturated_joint = i

        with np.errstate(divide='ignore'):
            payload = float(np.float64(min_payload) / solver.gravity_norm)
        logger.debug(f"Max payload (kg): {payload:f}")
        return PayloadLimit(payload=payload, saturated_joint=saturated_joint)

    def compute_payload_torques(self, joint_angles, payload: float,
                                out: Optional[np.ndarray] = None) -> Optional[np.ndarray]:
        """Static joint efforts when holding `payload` kg at the tip.

        Returns:
            The efforts (`out` itself when given), or None on failure.
        """
        solver = self._solver
        if solver is _INVALID:
            logger.debug("Did not construct DynamicsSolver object properly. Check error logs.")
            return None

        num_joints = solver.chain.joint_count
        angles = np.asarray(joint_angles, dtype=np.float64)
        if angles.shape != (num_joints,):
            logger.error(f"Joint angles vector should be size {num_joints}")
            return None
        if out is not None and np.shape(out) != (num_joints,):
            logger.error(f"Joint torques vector should be size {num_joints}")
            return None

        zeros = np.zeros(num_joints)
        wrenches = self._tip_wrenches(solver, angles, payload * solver.gravity_norm)
        return self.compute_torques(angles, zeros, zeros, wrenches, out=out)

    @staticmethod
    def _tip_wrenches(solver: _ValidSolver, angles: np.ndarray, force: float) -> np.ndarray:
        """Segment wrenches with a force of magnitude `force` along base z at the tip.

        Only the rotation between the base and tip frames is applied; the force
        stays attached to the tip segment.
        """
        state = solver.state.copy()
        state.set_joint_group_positions(solver.group, angles)
        base_frame = jnp.asarray(state.get_frame_transform(solver.base_name))
        tip_frame = jnp.asarray(state.get_frame_transform(solver.tip_name))
        rotation = np.asarray(se3.get_rotation(se3.multiply(se3.inverse(tip_frame), base_frame)))

        wrenches = np.zeros((solver.chain.segment_count, 6))
        wrenches[-1, :3] = rotation @ np.array([0.0, 0.0, force])
        wrenches[-1, 3:] = rotation @ np.zeros(3)
        logger.debug(f"New wrench (local frame): {wrenches[-1, 0]:f} "
                     f"{wrenches[-1, 1]:f} {wrenches[-1, 2]:f}")
        return wrenches
