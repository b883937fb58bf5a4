"""
Compound configuration space: screw progress plus manipulator joints.

A state of the space pairs the progress ``theta`` along the screw with a
joint vector for the move group. The space is rebuilt for every planning
call because its bounds and parameters depend on the request.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from compas.geometry import Transformation

from screwplanner.core.config import PlannerConfig
from screwplanner.core.exceptions import InitializationError
from screwplanner.core.logging import get_logger
from screwplanner.motion.kinematics import JointKind, KinematicsProvider
from screwplanner.motion.screw import ScrewConstraint

logger = get_logger(__name__)

# Planar joints have no natural finite range
PLANAR_TRANSLATION_BOUNDS = (-1e3, 1e3)
PLANAR_ROTATION_BOUNDS = (-np.pi, np.pi)


@dataclass
class CompoundState:
    """
    One point of the compound space.

    Attributes:
        progress: Progress along the screw (theta)
        joints: Joint vector of the move group
    """

    progress: float
    joints: np.ndarray

    def __post_init__(self) -> None:
        self.progress = float(self.progress)
        self.joints = np.asarray(self.joints, dtype=float)

    def copy(self) -> "CompoundState":
        return CompoundState(self.progress, self.joints.copy())

    def as_vector(self) -> np.ndarray:
        return np.concatenate(([self.progress], self.joints))

    @classmethod
    def from_vector(cls, vector: np.ndarray) -> "CompoundState":
        return cls(vector[0], vector[1:])


@dataclass
class SpaceParameters:
    """Metadata consumed by the sampler and validity checker."""

    constraint: ScrewConstraint
    start_pose: Transformation
    ee_frame_name: str
    move_group: str


class CompoundSpace:
    """
    Bounded space of (progress, joints) states.

    Dimensions may only be added until ``lock()`` is called.
    """

    def __init__(self, theta_max: float):
        self.progress_bounds = (0.0, float(theta_max))
        self.variable_names: List[str] = []
        self._lower: List[float] = []
        self._upper: List[float] = []
        self.params: Optional[SpaceParameters] = None
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def add_dimension(self, name: str, lower: float, upper: float) -> None:
        """Append one bounded joint dimension."""
        if self._locked:
            raise InitializationError(
                "Cannot add a dimension to a locked space", joint_name=name
            )
        if not upper >= lower:
            raise InitializationError(
                f"Invalid bounds for {name}",
                joint_name=name,
                details={"lower": lower, "upper": upper},
            )
        self.variable_names.append(name)
        self._lower.append(float(lower))
        self._upper.append(float(upper))

    def set_parameters(self, params: SpaceParameters) -> None:
        if self._locked:
            raise InitializationError("Cannot set parameters on a locked space")
        self.params = params

    @property
    def theta_max(self) -> float:
        return self.progress_bounds[1]

    @property
    def joint_count(self) -> int:
        return len(self.variable_names)

    @property
    def dimension(self) -> int:
        return 1 + self.joint_count

    @property
    def joint_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return np.array(self._lower), np.array(self._upper)

    def contains(self, state: CompoundState) -> bool:
        lower, upper = self.joint_bounds
        if state.joints.shape != lower.shape:
            return False
        if not self.progress_bounds[0] <= state.progress <= self.progress_bounds[1]:
            return False
        return bool(np.all(state.joints >= lower) and np.all(state.joints <= upper))

    def distance(self, a: CompoundState, b: CompoundState) -> float:
        """Sum of the progress and joint-space Euclidean distances."""
        return abs(a.progress - b.progress) + float(np.linalg.norm(a.joints - b.joints))

    def interpolate(self, a: CompoundState, b: CompoundState, t: float) -> CompoundState:
        """State a fraction ``t`` of the way from ``a`` to ``b``."""
        progress = (1.0 - t) * a.progress + t * b.progress
        progress = min(max(progress, self.progress_bounds[0]), self.progress_bounds[1])
        return CompoundState(progress, (1.0 - t) * a.joints + t * b.joints)

    def sample_uniform(self, rng: np.random.Generator) -> CompoundState:
        lower, upper = self.joint_bounds
        return CompoundState(
            rng.uniform(*self.progress_bounds), rng.uniform(lower, upper)
        )

    def __repr__(self) -> str:
        return (
            f"CompoundSpace(theta_max={self.theta_max}, "
            f"joints={self.joint_count}, locked={self._locked})"
        )


@dataclass
class PlanningContext:
    """
    Everything one planning session's strategies need.

    Passed explicitly to the sampler, validity checker and search engine so
    that concurrent planners never share a kinematics binding.
    """

    space: CompoundSpace
    kinematics: KinematicsProvider
    config: PlannerConfig = field(default_factory=PlannerConfig)

    @property
    def params(self) -> SpaceParameters:
        if self.space.params is None:
            raise InitializationError("Space parameters have not been set")
        return self.space.params

    @property
    def constraint(self) -> ScrewConstraint:
        return self.params.constraint


def build_space(
    kinematics: KinematicsProvider,
    constraint: ScrewConstraint,
    ee_frame_name: str,
    move_group: str,
) -> CompoundSpace:
    """
    Build and lock the compound space for one planning call.

    Args:
        kinematics: Provider of the move group's joints
        constraint: Screw constraint already expressed in the start frame
        ee_frame_name: End-effector frame name
        move_group: Move group name

    Returns:
        Locked CompoundSpace with its parameters attached

    Raises:
        InitializationError: If a joint is unbounded or of an unsupported kind
    """
    space = CompoundSpace(constraint.theta_max)

    for joint in kinematics.active_joints():
        if joint.kind in (JointKind.REVOLUTE, JointKind.PRISMATIC):
            if joint.bounds is None:
                raise InitializationError(
                    f"Joint '{joint.name}' has no position bounds",
                    joint_name=joint.name,
                    details={"kind": joint.kind.value},
                )
            space.add_dimension(joint.name, *joint.bounds)
        elif joint.kind == JointKind.PLANAR:
            x_name, y_name, theta_name = joint.variable_names
            space.add_dimension(x_name, *PLANAR_TRANSLATION_BOUNDS)
            space.add_dimension(y_name, *PLANAR_TRANSLATION_BOUNDS)
            space.add_dimension(theta_name, *PLANAR_ROTATION_BOUNDS)
        elif joint.kind == JointKind.UNSUPPORTED:
            raise InitializationError(
                f"Joint '{joint.name}' has an unsupported type",
                joint_name=joint.name,
            )
        else:
            raise InitializationError(
                f"Unhandled joint kind {joint.kind!r}", joint_name=joint.name
            )

    if space.joint_count != kinematics.variable_count():
        raise InitializationError(
            "Space dimensions do not match the move group's variables",
            details={
                "space": space.joint_count,
                "variables": kinematics.variable_count(),
            },
        )

    space.set_parameters(
        SpaceParameters(
            constraint=constraint,
            start_pose=constraint.start_pose,
            ee_frame_name=ee_frame_name,
            move_group=move_group,
        )
    )
    space.lock()

    logger.debug(
        "space_built",
        dimension=space.dimension,
        theta_max=space.theta_max,
        move_group=move_group,
    )
    return space
