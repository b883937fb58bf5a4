"""
Start and goal configuration synthesis.

Finds joint configurations for the screw's start and goal poses with IK,
seeding each attempt from a random configuration so that distinct IK
branches are discovered. Individual IK failures are expected and simply do
not contribute a candidate.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from compas.geometry import Transformation

from screwplanner.core.exceptions import NoIKSolutionError
from screwplanner.core.logging import get_logger
from screwplanner.motion.kinematics import KinematicsProvider
from screwplanner.motion.screw import ScrewConstraint

logger = get_logger(__name__)


@dataclass
class StartGoalSet:
    """Joint configurations for the start (theta = 0) and goal (theta = max)."""

    starts: List[np.ndarray] = field(default_factory=list)
    goals: List[np.ndarray] = field(default_factory=list)


def is_duplicate(
    candidate: Sequence[float], existing: Sequence[Sequence[float]], tolerance: float
) -> bool:
    """
    Check whether ``candidate`` matches any configuration in ``existing``.

    Two configurations match when every joint differs by at most ``tolerance``.
    """
    candidate = np.asarray(candidate, dtype=float)
    for other in existing:
        if np.max(np.abs(candidate - np.asarray(other, dtype=float))) <= tolerance:
            return True
    return False


class StartGoalSynthesizer:
    """
    Generates deduplicated IK solutions for the ends of a screw motion.

    Example:
        >>> synthesizer = StartGoalSynthesizer(kinematics, constraint, rng)
        >>> found = synthesizer.find_goal_states(start_joints, num_goal=10)
        >>> len(found.starts)
        1
    """

    def __init__(
        self,
        kinematics: KinematicsProvider,
        constraint: ScrewConstraint,
        rng: np.random.Generator,
        dedup_tolerance: float = 1e-3,
    ):
        self.kinematics = kinematics
        self.constraint = constraint
        self.rng = rng
        self.dedup_tolerance = dedup_tolerance

    def _increase_state_list(
        self,
        pose: Transformation,
        state_list: List[np.ndarray],
        seed: np.ndarray,
    ) -> Optional[np.ndarray]:
        """
        Try one IK solve; append the solution unless it is a duplicate.

        Returns:
            The IK solution (even a duplicate one), or None if IK failed
        """
        solution = self.kinematics.solve_ik(pose, seed)
        if solution is None:
            return None

        solution = np.asarray(solution, dtype=float)
        if not is_duplicate(solution, state_list, self.dedup_tolerance):
            state_list.append(solution)
        return solution

    def find_goal_states(
        self, start_joints: Sequence[float], num_goal: int
    ) -> StartGoalSet:
        """
        Seeded mode: the start is given, only goal configurations are searched.

        The first IK attempt is seeded from the start configuration, later
        ones from random configurations. Stops after ``num_goal`` distinct
        solutions or ``2 * num_goal`` attempts.

        Raises:
            NoIKSolutionError: If the start has the wrong size or no goal was found
        """
        start = np.asarray(start_joints, dtype=float)
        if start.shape != (self.kinematics.variable_count(),):
            raise NoIKSolutionError(
                "Start joint state does not match the move group",
                details={
                    "given": len(start),
                    "expected": self.kinematics.variable_count(),
                },
            )
        if num_goal < 1:
            raise NoIKSolutionError("At least one goal configuration is required")

        found = StartGoalSet(starts=[start.copy()])
        goal_pose = self.constraint.goal_pose

        seed = start
        attempts = 0
        while len(found.goals) < num_goal and attempts < 2 * num_goal:
            self._increase_state_list(goal_pose, found.goals, seed)
            seed = self.kinematics.random_positions(self.rng)
            attempts += 1

        logger.debug("goal_states_found", goals=len(found.goals), attempts=attempts)
        if not found.goals:
            raise NoIKSolutionError(
                "No IK solution for the screw goal pose",
                details={"attempts": attempts},
            )
        return found

    def find_start_goal_states(self, num_start: int, num_goal: int) -> StartGoalSet:
        """
        Unseeded mode: grow start and goal sets in the same loop.

        Each iteration draws one random seed and tries the start pose (while
        starts are missing) then the goal pose (while goals are missing). A
        successful start solve seeds the goal solve of the same iteration, so
        starts and goals tend to share an IK branch.
        Bounded at ``2 * (num_start + num_goal)`` iterations.

        Raises:
            NoIKSolutionError: If either set ends up empty
        """
        if num_start < 1 or num_goal < 1:
            raise NoIKSolutionError(
                "At least one start and one goal configuration are required"
            )

        found = StartGoalSet()
        start_pose = self.constraint.pose_at(0.0)
        goal_pose = self.constraint.goal_pose

        attempts = 0
        while (
            len(found.starts) < num_start or len(found.goals) < num_goal
        ) and attempts < 2 * (num_start + num_goal):
            seed = self.kinematics.random_positions(self.rng)
            attempts += 1

            if len(found.starts) < num_start:
                solution = self._increase_state_list(start_pose, found.starts, seed)
                if solution is not None:
                    seed = solution
            if len(found.goals) < num_goal:
                self._increase_state_list(goal_pose, found.goals, seed)

        logger.debug(
            "start_goal_states_found",
            starts=len(found.starts),
            goals=len(found.goals),
            attempts=attempts,
        )
        if not found.starts or not found.goals:
            raise NoIKSolutionError(
                "No IK solution for the screw start or goal pose",
                details={"starts": len(found.starts), "goals": len(found.goals)},
            )
        return found

    def synthesize(
        self,
        start_joints: Optional[Sequence[float]],
        num_start: int,
        num_goal: int,
    ) -> StartGoalSet:
        """Pick seeded or unseeded mode depending on ``start_joints``."""
        if start_joints is not None:
            return self.find_goal_states(start_joints, num_goal)
        return self.find_start_goal_states(num_start, num_goal)
