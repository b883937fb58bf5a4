"""
Screw-aware sampling and validity checking.

The search engine only depends on the ``StateSampler`` and
``StateValidityChecker`` interfaces; the screw implementations draw states
whose joints realize the constrained end-effector pose and reject states that
drift off it.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from screwplanner.core.logging import get_logger
from screwplanner.motion.space import CompoundState, PlanningContext
from screwplanner.motion.transforms import pose_error

logger = get_logger(__name__)


class StateSampler(ABC):
    """Draws states for the search engine."""

    @abstractmethod
    def sample(self) -> Optional[CompoundState]:
        """Return a new state, or None if sampling failed."""


class StateValidityChecker(ABC):
    """Predicate the search engine uses to reject infeasible states."""

    @abstractmethod
    def is_valid(self, state: CompoundState) -> bool:
        """True if ``state`` may be part of a path."""


class ScrewSampler(StateSampler):
    """
    Samples states on the screw constraint.

    Each attempt draws a progress value uniformly, computes the constrained
    end-effector pose and solves IK for it from a random seed. IK failures
    are retried up to ``config.sampler_attempts`` times.
    """

    def __init__(self, context: PlanningContext, rng: np.random.Generator):
        self.context = context
        self.rng = rng

    def sample(self) -> Optional[CompoundState]:
        space = self.context.space
        constraint = self.context.constraint
        kinematics = self.context.kinematics

        for _ in range(self.context.config.sampler_attempts):
            theta = float(self.rng.uniform(*space.progress_bounds))
            target = constraint.pose_at(theta)
            seed = kinematics.random_positions(self.rng)

            solution = kinematics.solve_ik(target, seed)
            if solution is not None:
                return CompoundState(theta, solution)

        logger.debug("sample_failed", attempts=self.context.config.sampler_attempts)
        return None


class ScrewValidityChecker(StateValidityChecker):
    """
    A state is valid when its joints are within bounds, the robot is
    collision free, and (with ``verify_constraint``) the end-effector pose
    matches the screw pose at the state's progress.
    """

    def __init__(self, context: PlanningContext):
        self.context = context

    def constraint_error(self, state: CompoundState) -> Tuple[float, float]:
        """Position and orientation distance from the screw pose."""
        params = self.context.params
        actual = self.context.kinematics.forward_kinematics(
            state.joints, params.ee_frame_name
        )
        return pose_error(actual, params.constraint.pose_at(state.progress))

    def is_valid(self, state: CompoundState) -> bool:
        kinematics = self.context.kinematics
        config = self.context.config

        if not self.context.space.contains(state):
            return False
        if not kinematics.satisfies_bounds(state.joints):
            return False
        if not kinematics.is_collision_free(state.joints):
            return False

        if config.verify_constraint:
            pos_err, orient_err = self.constraint_error(state)
            if pos_err > config.constraint_position_tolerance:
                return False
            if orient_err > config.constraint_orientation_tolerance:
                return False

        return True
