"""
Goal region accepting any of several goal configurations.

Because a redundant manipulator reaches the screw's final pose with many
joint configurations, the goal is a set of states rather than one.
"""

from typing import List

import numpy as np

from screwplanner.motion.space import CompoundSpace, CompoundState


class ScrewGoal:
    """
    Set of accepted goal states at the end of the screw motion.

    A state satisfies the goal when its distance (in the compound space
    metric) to some stored goal state is within ``tolerance``.
    """

    def __init__(self, space: CompoundSpace, tolerance: float = 0.01):
        self.space = space
        self.tolerance = tolerance
        self._states: List[CompoundState] = []

    def add_state(self, state: CompoundState) -> None:
        self._states.append(state.copy())

    @property
    def states(self) -> List[CompoundState]:
        return list(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def has_states(self) -> bool:
        return bool(self._states)

    def distance_goal(self, state: CompoundState) -> float:
        """Distance from ``state`` to the closest goal state."""
        if not self._states:
            return np.inf
        return min(self.space.distance(state, goal) for goal in self._states)

    def is_satisfied(self, state: CompoundState) -> bool:
        return self.distance_goal(state) <= self.tolerance
