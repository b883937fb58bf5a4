"""
Screw motion planner.

Plans a joint trajectory whose end-effector follows a prescribed screw
motion while the remaining (redundant) joints move freely. Each call to
``ScrewPlanner.plan`` builds the compound space, wires the screw sampler and
validity checker into a search engine, synthesizes start and goal
configurations with IK, searches, and converts the path to a trajectory.

A trajectory that only covers part of the screw motion is a normal result:
it comes back with ``trajectory_is_valid=False`` and the fraction of the
motion achieved in ``percentage_complete``.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
from compas.geometry import Transformation
from pydantic import BaseModel, ConfigDict

from screwplanner.core.config import PlannerConfig
from screwplanner.core.exceptions import (
    InitializationError,
    NoIKSolutionError,
    RobotError,
    ScrewPlannerError,
)
from screwplanner.core.logging import (
    bind_planning_context,
    clear_planning_context,
    get_logger,
)
from screwplanner.motion.goals import ScrewGoal
from screwplanner.motion.kinematics import KinematicsProvider
from screwplanner.motion.roadmap import GeometricPath, RoadmapPlanner, SearchEngine
from screwplanner.motion.sampling import (
    ScrewSampler,
    ScrewValidityChecker,
    StateSampler,
    StateValidityChecker,
)
from screwplanner.motion.screw import ScrewAxis, ScrewConstraint
from screwplanner.motion.space import CompoundState, PlanningContext, build_space
from screwplanner.motion.synthesis import StartGoalSynthesizer
from screwplanner.motion.transforms import pose_from_position_quaternion

logger = get_logger(__name__)


class PlanningOutcome(Enum):
    """Result codes of a planning call."""

    SUCCESS = "success"
    INITIALIZATION_FAIL = "initialization_fail"
    NO_IK_SOLUTION = "no_ik_solution"
    PLANNING_FAIL = "planning_fail"


class PlannerState(Enum):
    """Progress of the current planning call."""

    INITIALIZED = "initialized"
    SPACE_BUILT = "space_built"
    SAMPLER_WIRED = "sampler_wired"
    STARTS_GOALS_FOUND = "starts_goals_found"
    SOLVED = "solved"
    PLANNING_FAILED = "planning_failed"
    INITIALIZATION_FAIL = "initialization_fail"
    NO_IK_SOLUTION = "no_ik_solution"


class PoseSpec(BaseModel):
    """Pose given as position and (x, y, z, w) quaternion in ``frame_id``."""

    model_config = ConfigDict(frozen=True)

    frame_id: str = ""
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)

    def to_transformation(self) -> Transformation:
        return pose_from_position_quaternion(self.position, self.orientation)


class PlanningRequest(BaseModel):
    """
    One screw planning problem.

    Attributes:
        screw: Screw axis, expressed in the planning frame
        theta: Total screw progress to plan for
        start_joint_state: Optional start configuration of the move group;
            used only when it has one value per move group variable
        start_pose: End-effector start pose, used without a start configuration
        ee_frame_name: End-effector frame that follows the screw
        move_group: Move group name
    """

    model_config = ConfigDict(frozen=True)

    screw: ScrewAxis
    theta: float
    start_joint_state: Optional[Tuple[float, ...]] = None
    start_pose: PoseSpec = PoseSpec()
    ee_frame_name: str
    move_group: str = ""


@dataclass
class PlanningResponse:
    """Trajectory produced by one planning call."""

    outcome: PlanningOutcome = PlanningOutcome.PLANNING_FAIL
    joint_names: List[str] = field(default_factory=list)
    trajectory: List[List[float]] = field(default_factory=list)
    trajectory_is_valid: bool = False
    percentage_complete: float = 0.0
    path_length: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome == PlanningOutcome.SUCCESS

    def to_dict(self) -> dict:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data


EngineFactory = Callable[
    [
        PlanningContext,
        StateSampler,
        StateValidityChecker,
        ScrewGoal,
        List[CompoundState],
        np.random.Generator,
    ],
    SearchEngine,
]


def completion_fraction(progress: float, theta: float) -> float:
    return float(min(max(progress / theta, 0.0), 1.0))


class ScrewPlanner:
    """
    Plans screw-constrained joint trajectories for one move group.

    One instance keeps the working state of its latest call (``state``,
    ``context``, ``engine``) and must not run two ``plan`` calls at once.
    Separate instances share nothing.

    Example:
        >>> planner = ScrewPlanner(kinematics, move_group="arm")
        >>> response = planner.plan(request, seed=0)
        >>> response.outcome, response.percentage_complete
    """

    def __init__(
        self,
        kinematics: KinematicsProvider,
        move_group: str = "",
        config: Optional[PlannerConfig] = None,
        engine_factory: EngineFactory = RoadmapPlanner,
    ):
        """
        Initialize the planner.

        Args:
            kinematics: Kinematics provider of the move group
            move_group: Name recorded in the space parameters
            config: Planner tuning (defaults to PlannerConfig())
            engine_factory: Builds the search engine for each call
        """
        self.kinematics = kinematics
        self.move_group = move_group
        self.config = config or PlannerConfig()
        self.engine_factory = engine_factory

        self.state = PlannerState.INITIALIZED
        self.context: Optional[PlanningContext] = None
        self.engine: Optional[SearchEngine] = None

    def plan(self, request: PlanningRequest, seed: Optional[int] = None) -> PlanningResponse:
        """
        Plan a trajectory for ``request``.

        Args:
            request: The screw planning problem
            seed: Random seed (default: ``config.seed``); equal seeds and
                requests give equal responses

        Returns:
            PlanningResponse; inspect ``trajectory_is_valid`` and
            ``percentage_complete`` even on SUCCESS
        """
        rng = np.random.default_rng(self.config.seed if seed is None else seed)
        move_group = request.move_group or self.move_group

        bind_planning_context(move_group=move_group, ee_frame=request.ee_frame_name)
        try:
            response = self._plan(request, move_group, rng)
        finally:
            clear_planning_context("move_group", "ee_frame")
        return response

    def _plan(
        self, request: PlanningRequest, move_group: str, rng: np.random.Generator
    ) -> PlanningResponse:
        response = PlanningResponse()
        self.state = PlannerState.INITIALIZED
        self.context = None
        self.engine = None

        # Start pose decides between seeded and unseeded synthesis
        try:
            start_pose, start_joints = self._resolve_start(request)
            constraint = ScrewConstraint.from_screw(
                request.screw, start_pose, request.theta, request.ee_frame_name
            )
            space = build_space(
                self.kinematics, constraint, request.ee_frame_name, move_group
            )
        except (InitializationError, RobotError) as e:
            logger.error("space_setup_failed", error=str(e))
            return self._finish(
                response, PlanningOutcome.INITIALIZATION_FAIL,
                PlannerState.INITIALIZATION_FAIL,
            )
        self.state = PlannerState.SPACE_BUILT

        context = PlanningContext(space, self.kinematics, self.config)
        sampler = ScrewSampler(context, rng)
        validity_checker = ScrewValidityChecker(context)
        self.context = context
        self.state = PlannerState.SAMPLER_WIRED

        synthesizer = StartGoalSynthesizer(
            self.kinematics, constraint, rng, self.config.dedup_tolerance
        )
        try:
            found = synthesizer.synthesize(
                start_joints, self.config.num_start, self.config.num_goal
            )
        except NoIKSolutionError as e:
            logger.warning("start_goal_synthesis_failed", error=str(e))
            return self._finish(
                response, PlanningOutcome.NO_IK_SOLUTION, PlannerState.NO_IK_SOLUTION
            )
        self.state = PlannerState.STARTS_GOALS_FOUND

        starts = [CompoundState(0.0, joints) for joints in found.starts]
        goal = ScrewGoal(space, tolerance=self.config.goal_tolerance)
        for joints in found.goals:
            goal.add_state(CompoundState(constraint.theta_max, joints))

        logger.info(
            "search_started",
            starts=len(starts),
            goals=len(goal),
            seeded=start_joints is not None,
            time_budget=self.config.solve_time,
        )
        engine = self.engine_factory(context, sampler, validity_checker, goal, starts, rng)
        self.engine = engine

        path = engine.solve(self.config.solve_time)
        if path is None:
            logger.warning("search_failed", time_budget=self.config.solve_time)
            return self._finish(
                response, PlanningOutcome.PLANNING_FAIL, PlannerState.PLANNING_FAILED
            )

        try:
            path = engine.simplify(path, self.config.simplify_time)
        except ScrewPlannerError as e:
            logger.warning("simplification_failed", error=str(e))

        self.populate_response(engine, path, constraint.theta_max, response)
        return self._finish(response, PlanningOutcome.SUCCESS, PlannerState.SOLVED)

    def _finish(
        self,
        response: PlanningResponse,
        outcome: PlanningOutcome,
        state: PlannerState,
    ) -> PlanningResponse:
        response.outcome = outcome
        self.state = state
        logger.info(
            "plan_complete",
            outcome=outcome.value,
            trajectory_is_valid=response.trajectory_is_valid,
            percentage_complete=response.percentage_complete,
            points=len(response.trajectory),
        )
        return response

    def _resolve_start(
        self, request: PlanningRequest
    ) -> Tuple[Transformation, Optional[np.ndarray]]:
        """
        Determine the screw's start pose.

        Returns:
            (start pose in the planning frame, start joints or None)

        Raises:
            InitializationError: If the start pose has a zero quaternion
        """
        joints = request.start_joint_state
        if joints is not None and len(joints) == self.kinematics.variable_count():
            start = np.asarray(joints, dtype=float)
            pose = self.kinematics.forward_kinematics(start, request.ee_frame_name)
            return pose, start

        if joints is not None:
            logger.warning(
                "start_joint_state_ignored",
                given=len(joints),
                expected=self.kinematics.variable_count(),
            )
        try:
            return request.start_pose.to_transformation(), None
        except ValueError as e:
            raise InitializationError(
                f"Invalid start pose: {e}",
                details={"orientation": list(request.start_pose.orientation)},
            ) from e

    def populate_response(
        self,
        engine: SearchEngine,
        path: GeometricPath,
        theta: float,
        response: PlanningResponse,
    ) -> None:
        """
        Convert a solution path into the response trajectory.

        The path is interpolated and walked in order. The first state the
        engine rejects ends the trajectory, which is then marked invalid with
        the progress reached. Otherwise the trajectory is valid only if it
        ends within ``goal_tolerance`` of ``theta``.
        """
        if path.state_count() < 2:
            return

        dense = engine.interpolate(path)
        response.joint_names = self.kinematics.variable_names()

        for state in dense.states:
            if not engine.is_valid(state):
                response.trajectory_is_valid = False
                response.percentage_complete = completion_fraction(state.progress, theta)
                logger.info(
                    "trajectory_truncated",
                    progress=state.progress,
                    points=len(response.trajectory),
                )
                return
            response.trajectory.append([float(v) for v in state.joints])

        final_progress = dense.states[-1].progress
        response.trajectory_is_valid = (
            abs(theta - final_progress) <= self.config.goal_tolerance
        )
        response.percentage_complete = completion_fraction(final_progress, theta)
        response.path_length = dense.length()
