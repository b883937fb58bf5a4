"""
Probabilistic roadmap search over the compound space.

The roadmap only talks to the sampler, validity checker and goal through
their interfaces. Milestones are connected to their nearest neighbours with
straight-line motions that are validity checked at a fixed resolution;
connected components are tracked with a union-find so the search can stop
as soon as any start reaches any goal. The final path is the shortest one
through the roadmap (scipy.sparse.csgraph).
"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra

from screwplanner.core.logging import get_logger
from screwplanner.motion.goals import ScrewGoal
from screwplanner.motion.sampling import StateSampler, StateValidityChecker
from screwplanner.motion.space import CompoundSpace, CompoundState, PlanningContext

logger = get_logger(__name__)

# scipy.sparse.csgraph marks "no predecessor" with this value
NO_PREDECESSOR = -9999


@dataclass
class GeometricPath:
    """Ordered states of a solution path."""

    space: CompoundSpace
    states: List[CompoundState] = field(default_factory=list)

    def length(self) -> float:
        return float(
            sum(
                self.space.distance(a, b)
                for a, b in zip(self.states[:-1], self.states[1:])
            )
        )

    def state_count(self) -> int:
        return len(self.states)


class SearchEngine(ABC):
    """Operations the planner needs from a sampling-based search engine."""

    @abstractmethod
    def solve(self, time_budget: float) -> Optional[GeometricPath]:
        """Search for a path; None if the budget ran out."""

    @abstractmethod
    def simplify(self, path: GeometricPath, time_budget: float) -> GeometricPath:
        """Return a shortened copy of ``path``."""

    @abstractmethod
    def interpolate(self, path: GeometricPath) -> GeometricPath:
        """Return a densely sampled copy of ``path``."""

    @abstractmethod
    def is_valid(self, state: CompoundState) -> bool:
        """The engine's state validity predicate."""


class RoadmapPlanner(SearchEngine):
    """
    PRM-style search engine.

    Example:
        >>> engine = RoadmapPlanner(context, sampler, checker, goal, starts, rng)
        >>> path = engine.solve(5.0)
        >>> if path is not None:
        ...     path = engine.simplify(path, 1.0)
        ...     dense = engine.interpolate(path)
    """

    def __init__(
        self,
        context: PlanningContext,
        sampler: StateSampler,
        validity_checker: StateValidityChecker,
        goal: ScrewGoal,
        starts: List[CompoundState],
        rng: np.random.Generator,
    ):
        self.context = context
        self.space = context.space
        self.sampler = sampler
        self.validity_checker = validity_checker
        self.goal = goal
        self.starts = [s.copy() for s in starts]
        self.rng = rng

        config = context.config
        self.max_neighbors = config.max_neighbors
        self.longest_valid_segment = config.longest_valid_segment
        self.max_iterations = config.max_iterations
        self.simplify_attempts = config.simplify_attempts

        self._milestones: List[CompoundState] = []
        self._vectors: List[np.ndarray] = []
        self._parent: List[int] = []
        self._edges: Dict[tuple, float] = {}
        self._start_ids: List[int] = []
        self._goal_ids: List[int] = []

    # ------------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------------

    def is_valid(self, state: CompoundState) -> bool:
        return self.validity_checker.is_valid(state)

    def check_motion(self, a: CompoundState, b: CompoundState) -> bool:
        """Validate the straight segment from ``a`` to ``b`` (``a`` assumed valid)."""
        steps = max(1, math.ceil(self.space.distance(a, b) / self.longest_valid_segment))
        for i in range(1, steps + 1):
            if not self.is_valid(self.space.interpolate(a, b, i / steps)):
                return False
        return True

    # ------------------------------------------------------------------
    # Roadmap bookkeeping
    # ------------------------------------------------------------------

    def _find(self, i: int) -> int:
        while self._parent[i] != i:
            self._parent[i] = self._parent[self._parent[i]]
            i = self._parent[i]
        return i

    def _union(self, i: int, j: int) -> None:
        root_i, root_j = self._find(i), self._find(j)
        if root_i != root_j:
            self._parent[root_j] = root_i

    def _nearest(self, state: CompoundState, count: int) -> List[int]:
        if not self._vectors:
            return []
        vectors = np.array(self._vectors)
        distances = np.abs(vectors[:, 0] - state.progress) + np.linalg.norm(
            vectors[:, 1:] - state.joints, axis=1
        )
        order = np.argsort(distances, kind="stable")
        return [int(i) for i in order[:count]]

    def _add_milestone(self, state: CompoundState) -> int:
        """
        Insert a valid state and connect it to its nearest neighbours.

        States that satisfy the goal region become goal milestones, whether
        they are stored goal states or samples.
        """
        neighbours = self._nearest(state, self.max_neighbors)

        index = len(self._milestones)
        self._milestones.append(state)
        self._vectors.append(state.as_vector())
        self._parent.append(index)

        for other in neighbours:
            if self._find(other) == self._find(index):
                continue
            if self.check_motion(self._milestones[other], state):
                weight = max(self.space.distance(self._milestones[other], state), 1e-12)
                self._edges[(other, index)] = weight
                self._union(other, index)

        if self.goal.is_satisfied(state):
            self._goal_ids.append(index)
        return index

    def _solution_exists(self) -> bool:
        goal_roots = {self._find(g) for g in self._goal_ids}
        return any(self._find(s) in goal_roots for s in self._start_ids)

    def _extract_path(self) -> Optional[GeometricPath]:
        n = len(self._milestones)
        if self._edges:
            rows, cols = zip(*self._edges.keys())
            weights = list(self._edges.values())
        else:
            rows, cols, weights = (), (), []
        graph = csr_matrix((weights, (rows, cols)), shape=(n, n))

        distances, predecessors, _ = dijkstra(
            graph,
            directed=False,
            indices=self._start_ids,
            return_predecessors=True,
            min_only=True,
        )

        best_goal = min(self._goal_ids, key=lambda g: distances[g])
        if not np.isfinite(distances[best_goal]):
            return None

        indices = [best_goal]
        while predecessors[indices[-1]] != NO_PREDECESSOR:
            indices.append(int(predecessors[indices[-1]]))
        indices.reverse()

        return GeometricPath(
            self.space, [self._milestones[i].copy() for i in indices]
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def solve(self, time_budget: float) -> Optional[GeometricPath]:
        """
        Grow the roadmap until a start connects to a goal.

        Args:
            time_budget: Wall-clock limit in seconds

        Returns:
            Shortest roadmap path from a start to a goal, or None
        """
        deadline = time.monotonic() + time_budget

        for start in self.starts:
            if self.is_valid(start):
                self._start_ids.append(self._add_milestone(start))
        for goal_state in self.goal.states:
            if self.is_valid(goal_state):
                self._add_milestone(goal_state)

        if not self._start_ids or not self.goal.has_states():
            logger.warning(
                "roadmap_invalid_endpoints",
                valid_starts=len(self._start_ids),
                goal_states=len(self.goal),
            )
            return None
        if not self._goal_ids:
            logger.debug("roadmap_goal_states_invalid", goal_states=len(self.goal))

        iterations = 0
        while not self._solution_exists():
            if iterations >= self.max_iterations or time.monotonic() >= deadline:
                logger.info(
                    "roadmap_exhausted",
                    iterations=iterations,
                    milestones=len(self._milestones),
                )
                return None
            iterations += 1

            state = self.sampler.sample()
            if state is None or not self.is_valid(state):
                continue
            self._add_milestone(state)

        path = self._extract_path()
        logger.debug(
            "roadmap_solved",
            iterations=iterations,
            milestones=len(self._milestones),
            edges=len(self._edges),
        )
        return path

    def simplify(self, path: GeometricPath, time_budget: float) -> GeometricPath:
        """
        Shortcut the path: drop intermediate states whenever two non-adjacent
        states can be joined by a valid straight motion.
        """
        deadline = time.monotonic() + time_budget
        states = [s.copy() for s in path.states]

        for _ in range(self.simplify_attempts):
            if len(states) < 3 or time.monotonic() >= deadline:
                break
            i, j = sorted(self.rng.choice(len(states), size=2, replace=False))
            if j - i < 2:
                continue
            if self.check_motion(states[i], states[j]):
                states = states[: i + 1] + states[j:]

        return GeometricPath(self.space, states)

    def interpolate(self, path: GeometricPath) -> GeometricPath:
        """Subdivide each segment so no step exceeds ``longest_valid_segment``."""
        if path.state_count() < 2:
            return GeometricPath(self.space, [s.copy() for s in path.states])

        dense = [path.states[0].copy()]
        for a, b in zip(path.states[:-1], path.states[1:]):
            steps = max(1, math.ceil(self.space.distance(a, b) / self.longest_valid_segment))
            for i in range(1, steps):
                dense.append(self.space.interpolate(a, b, i / steps))
            dense.append(b.copy())
        return GeometricPath(self.space, dense)
