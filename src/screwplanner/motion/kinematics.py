"""
Kinematics providers for the screw planner.

A provider answers everything the planner needs to know about the
manipulator: which joints move, their bounds, forward and inverse kinematics,
random joint configurations for IK seeding, and whether a configuration is
collision free.

``CompasKinematics`` implements the contract on top of a compas_robots
``RobotModel``, solving IK by numerical optimization with scipy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
from compas.geometry import Transformation
from compas_robots import Configuration, RobotModel
from compas_robots.model import Joint
from scipy.optimize import minimize

from screwplanner.core.exceptions import RobotError
from screwplanner.core.logging import get_logger
from screwplanner.motion.collision import CollisionChecker
from screwplanner.motion.transforms import pose_error, pose_from_frame, to_matrix

logger = get_logger(__name__)

# Sampling ranges used where a joint reports no finite bounds
UNBOUNDED_REVOLUTE_RANGE = (-np.pi, np.pi)
UNBOUNDED_PRISMATIC_RANGE = (-1.0, 1.0)

BOUNDS_EPSILON = 1e-9


class JointKind(Enum):
    """Joint kinds the planner distinguishes."""

    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"
    PLANAR = "planar"
    UNSUPPORTED = "unsupported"


@dataclass
class JointInfo:
    """
    One active joint of a move group.

    Attributes:
        name: Joint name
        kind: Joint kind
        bounds: (lower, upper) position limits, or None if unbounded
        variable_names: Names of the joint's position variables
    """

    name: str
    kind: JointKind
    bounds: Optional[Tuple[float, float]] = None
    variable_names: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.variable_names:
            if self.kind == JointKind.PLANAR:
                self.variable_names = [
                    f"{self.name}/x",
                    f"{self.name}/y",
                    f"{self.name}/theta",
                ]
            else:
                self.variable_names = [self.name]

    @property
    def is_bounded(self) -> bool:
        return self.bounds is not None


class KinematicsProvider(ABC):
    """
    Interface between the planner and a manipulator model.

    Subclasses must implement ``active_joints``, ``solve_ik`` and
    ``forward_kinematics``; bounds checks and random sampling are derived
    from ``active_joints``.
    """

    @abstractmethod
    def active_joints(self) -> List[JointInfo]:
        """Ordered active joints of the move group."""

    @abstractmethod
    def solve_ik(
        self, target: Transformation, seed: Sequence[float]
    ) -> Optional[np.ndarray]:
        """
        Solve inverse kinematics for the end-effector.

        Args:
            target: Desired end-effector pose in the planning frame
            seed: Joint vector to start the search from

        Returns:
            Joint vector reaching ``target``, or None if no solution was found
        """

    @abstractmethod
    def forward_kinematics(
        self, joints: Sequence[float], frame: Optional[str] = None
    ) -> Transformation:
        """Pose of ``frame`` (default: end-effector) at the given joint vector."""

    def is_collision_free(self, joints: Sequence[float]) -> bool:
        return True

    def variable_names(self) -> List[str]:
        names = []
        for joint in self.active_joints():
            names.extend(joint.variable_names)
        return names

    def variable_count(self) -> int:
        return len(self.variable_names())

    def variable_bounds(self) -> List[Optional[Tuple[float, float]]]:
        """Per-variable position bounds; None where the joint is unbounded."""
        bounds: List[Optional[Tuple[float, float]]] = []
        for joint in self.active_joints():
            if joint.kind == JointKind.PLANAR:
                bounds.extend([None, None, None])
            else:
                bounds.append(joint.bounds)
        return bounds

    def sampling_bounds(self) -> List[Tuple[float, float]]:
        """Finite per-variable ranges used for random seeds."""
        ranges: List[Tuple[float, float]] = []
        for joint in self.active_joints():
            if joint.kind == JointKind.PLANAR:
                ranges.extend(
                    [UNBOUNDED_PRISMATIC_RANGE, UNBOUNDED_PRISMATIC_RANGE,
                     UNBOUNDED_REVOLUTE_RANGE]
                )
            elif joint.bounds is not None:
                ranges.append(joint.bounds)
            elif joint.kind == JointKind.PRISMATIC:
                ranges.append(UNBOUNDED_PRISMATIC_RANGE)
            else:
                ranges.append(UNBOUNDED_REVOLUTE_RANGE)
        return ranges

    def random_positions(self, rng: np.random.Generator) -> np.ndarray:
        """Random joint vector within bounds, used to diversify IK seeds."""
        ranges = np.array(self.sampling_bounds(), dtype=float).reshape(-1, 2)
        return rng.uniform(ranges[:, 0], ranges[:, 1])

    def satisfies_bounds(self, joints: Sequence[float]) -> bool:
        values = np.asarray(joints, dtype=float)
        bounds = self.variable_bounds()
        if values.shape != (len(bounds),):
            return False

        for value, bound in zip(values, bounds):
            if bound is None:
                continue
            lower, upper = bound
            if value < lower - BOUNDS_EPSILON or value > upper + BOUNDS_EPSILON:
                return False
        return True


class CompasKinematics(KinematicsProvider):
    """
    Kinematics of a compas_robots RobotModel.

    Forward kinematics come straight from the model; inverse kinematics
    minimize position and orientation error with scipy, starting from the
    given seed, and only report success when the residual is within
    tolerance.

    compas_robots has no forward kinematics for planar (or floating) joints,
    so those are reported as UNSUPPORTED and a move group containing one
    cannot be planned for.
    """

    def __init__(
        self,
        robot: RobotModel,
        joint_names: Optional[List[str]] = None,
        ee_frame: Optional[str] = None,
        collision_checker: Optional[CollisionChecker] = None,
        position_tolerance: float = 1e-4,
        orientation_tolerance: float = 1e-3,
        orientation_weight: float = 0.1,
        max_iterations: int = 200,
        method: str = "SLSQP",
    ):
        """
        Initialize the provider.

        Args:
            robot: Robot model from compas_robots
            joint_names: Joints of the move group (default: all configurable joints)
            ee_frame: End-effector link (default: last link of the model)
            collision_checker: Optional pybullet collision checker
            position_tolerance: IK acceptance threshold in metres
            orientation_tolerance: IK acceptance threshold in radians
            orientation_weight: Weight of the rotation term in the IK objective
            max_iterations: Optimizer iteration limit per IK call
            method: scipy.optimize.minimize method
        """
        self.robot = robot
        self.collision_checker = collision_checker
        self.position_tolerance = position_tolerance
        self.orientation_tolerance = orientation_tolerance
        self.orientation_weight = orientation_weight
        self.max_iterations = max_iterations
        self.method = method

        configurable = {j.name: j for j in robot.iter_joints() if j.is_configurable()}
        if joint_names is None:
            joint_names = list(configurable.keys())

        missing = [name for name in joint_names if name not in configurable]
        if missing:
            raise RobotError(
                "Move group references unknown or fixed joints",
                details={"joints": missing},
            )
        self._joints = [configurable[name] for name in joint_names]
        self._all_joints = list(configurable.values())
        self._infos = [self._joint_info(joint) for joint in self._joints]

        if ee_frame is None:
            links = list(robot.iter_links())
            ee_frame = links[-1].name if links else None
        if ee_frame is None:
            raise RobotError("No end-effector link specified and robot has no links")
        self.ee_frame = ee_frame

    @staticmethod
    def _joint_info(joint: Joint) -> JointInfo:
        limit = joint.limit
        bounds = None
        if limit is not None and limit.lower is not None and limit.upper is not None:
            if limit.upper > limit.lower:
                bounds = (float(limit.lower), float(limit.upper))

        if joint.type == Joint.REVOLUTE:
            return JointInfo(joint.name, JointKind.REVOLUTE, bounds)
        if joint.type == Joint.CONTINUOUS:
            return JointInfo(joint.name, JointKind.REVOLUTE, None)
        if joint.type == Joint.PRISMATIC:
            return JointInfo(joint.name, JointKind.PRISMATIC, bounds)
        return JointInfo(joint.name, JointKind.UNSUPPORTED, bounds)

    def active_joints(self) -> List[JointInfo]:
        return list(self._infos)

    def _configuration(self, joints: Sequence[float]) -> Configuration:
        """Full model configuration; joints outside the move group stay at 0."""
        values = dict(zip((j.name for j in self._joints), joints))
        return Configuration(
            [float(values.get(j.name, 0.0)) for j in self._all_joints],
            [j.type for j in self._all_joints],
            [j.name for j in self._all_joints],
        )

    def forward_kinematics(
        self, joints: Sequence[float], frame: Optional[str] = None
    ) -> Transformation:
        link_name = frame or self.ee_frame
        try:
            result = self.robot.forward_kinematics(
                self._configuration(joints), link_name=link_name
            )
        except Exception as e:
            raise RobotError(
                f"Forward kinematics failed: {e}", details={"link": link_name}
            ) from e
        return pose_from_frame(result)

    def solve_ik(
        self, target: Transformation, seed: Sequence[float]
    ) -> Optional[np.ndarray]:
        target_matrix = to_matrix(target)
        bounds = self.sampling_bounds()
        x0 = np.clip(
            np.asarray(seed, dtype=float),
            [b[0] for b in bounds],
            [b[1] for b in bounds],
        )

        def objective(joint_values):
            current = to_matrix(self.forward_kinematics(joint_values))
            pos_error = current[:3, 3] - target_matrix[:3, 3]
            rot_error = current[:3, :3] - target_matrix[:3, :3]
            return float(
                pos_error @ pos_error
                + self.orientation_weight * np.sum(rot_error * rot_error)
            )

        options = {"maxiter": self.max_iterations}
        if self.method == "SLSQP":
            # Objective is squared; the default ftol stops ~1e-3 m short
            options["ftol"] = 1e-12

        try:
            result = minimize(
                objective,
                x0,
                method=self.method,
                bounds=bounds,
                options=options,
            )
        except RobotError:
            return None

        solution = np.asarray(result.x, dtype=float)
        pos_err, orient_err = pose_error(self.forward_kinematics(solution), target)
        if pos_err > self.position_tolerance or orient_err > self.orientation_tolerance:
            logger.debug(
                "ik_rejected", position_error=pos_err, orientation_error=orient_err
            )
            return None
        return solution

    def is_collision_free(self, joints: Sequence[float]) -> bool:
        if self.collision_checker is None:
            return True
        names = self.variable_names()
        return not self.collision_checker.check_collision(names, list(joints))
