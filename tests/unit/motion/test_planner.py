"""
Tests for the screw planner orchestration.

The search engine is replaced with a scripted one so the path-to-trajectory
conversion can be checked against known paths.
"""

import math

import numpy as np
import pytest

from screwplanner.core.config import PlannerConfig
from screwplanner.motion.kinematics import JointInfo, JointKind
from screwplanner.motion.planner import (
    PlannerState,
    PlanningOutcome,
    PlanningRequest,
    PlanningResponse,
    PoseSpec,
    ScrewPlanner,
    completion_fraction,
)
from screwplanner.motion.space import CompoundState
from tests.fakes import GANTRY_JOINTS, START_JOINTS, GantryKinematics, ScriptedEngine

THETA = math.pi / 2


def line_states(count, theta=THETA):
    return [CompoundState(p, START_JOINTS) for p in np.linspace(0.0, theta, count)]


def scripted(path_states, dense_states, valid_until=None):
    def factory(context, sampler, checker, goal, starts, rng):
        return ScriptedEngine(context, starts, goal, path_states, dense_states, valid_until)

    return factory


class TestCompletionFraction:
    def test_clipped(self):
        assert completion_fraction(0.5, 1.0) == 0.5
        assert completion_fraction(2.0, 1.0) == 1.0
        assert completion_fraction(-0.1, 1.0) == 0.0


class TestPlanningRequest:
    def test_defaults(self, door_screw):
        request = PlanningRequest(screw=door_screw, theta=1.0, ee_frame_name="tool0")

        assert request.start_joint_state is None
        assert request.start_pose == PoseSpec()
        assert request.move_group == ""

    def test_pose_spec_identity(self):
        matrix = np.array(PoseSpec(position=(1.0, 2.0, 3.0)).to_transformation().matrix)
        np.testing.assert_allclose(matrix[:3, 3], [1.0, 2.0, 3.0])
        np.testing.assert_allclose(matrix[:3, :3], np.eye(3), atol=1e-12)


class TestPlanningResponse:
    def test_failing_default(self):
        response = PlanningResponse()

        assert response.outcome == PlanningOutcome.PLANNING_FAIL
        assert response.trajectory == []
        assert response.trajectory_is_valid is False
        assert response.percentage_complete == 0.0
        assert not response.succeeded

    def test_to_dict(self):
        data = PlanningResponse(outcome=PlanningOutcome.SUCCESS).to_dict()
        assert data["outcome"] == "success"
        assert data["trajectory"] == []


class TestScrewPlanner:
    """Tests for ScrewPlanner.plan."""

    def test_full_trajectory(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry, engine_factory=scripted(line_states(6), line_states(30))
        )
        response = planner.plan(door_request, seed=0)

        assert response.outcome == PlanningOutcome.SUCCESS
        assert response.trajectory_is_valid
        assert response.percentage_complete == pytest.approx(1.0)
        assert len(response.trajectory) == 30
        assert response.joint_names == ["x1", "x2", "y", "z", "yaw"]
        assert response.path_length == pytest.approx(THETA)
        assert planner.state == PlannerState.SOLVED
        assert planner.engine.simplify_calls == 1

    def test_partial_trajectory(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry,
            engine_factory=scripted(line_states(6), line_states(30), 0.4 * THETA),
        )
        response = planner.plan(door_request, seed=0)

        assert response.outcome == PlanningOutcome.SUCCESS
        assert not response.trajectory_is_valid
        assert abs(response.percentage_complete - 0.4) < 0.05
        assert len(response.trajectory) == 12
        assert response.path_length == 0.0

    def test_trajectory_stops_at_first_rejection(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry,
            engine_factory=scripted(line_states(6), line_states(30), 0.4 * THETA),
        )
        planner.plan(door_request, seed=0)

        assert len(planner.engine.validity_queries) == 13

    def test_path_short_of_goal_is_invalid(self, gantry, door_request):
        short = line_states(10, theta=1.2)
        planner = ScrewPlanner(gantry, engine_factory=scripted(short, short))
        response = planner.plan(door_request, seed=0)

        assert response.outcome == PlanningOutcome.SUCCESS
        assert not response.trajectory_is_valid
        assert len(response.trajectory) == 10
        assert response.percentage_complete == pytest.approx(1.2 / THETA)

    def test_single_state_path_keeps_default(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry, engine_factory=scripted(line_states(1), line_states(1))
        )
        response = planner.plan(door_request, seed=0)

        assert response.trajectory == []
        assert not response.trajectory_is_valid
        assert response.percentage_complete == 0.0

    def test_search_failure(self, gantry, door_request):
        planner = ScrewPlanner(gantry, engine_factory=scripted(None, []))
        response = planner.plan(door_request, seed=0)

        assert response.outcome == PlanningOutcome.PLANNING_FAIL
        assert response.trajectory == []
        assert planner.state == PlannerState.PLANNING_FAILED

    def test_zero_quaternion_start_pose_fails_initialization(self, gantry, door_screw):
        request = PlanningRequest(
            screw=door_screw,
            theta=THETA,
            start_pose=PoseSpec(position=(0.5, 0.0, 1.0), orientation=(0.0, 0.0, 0.0, 0.0)),
            ee_frame_name="tool0",
        )
        planner = ScrewPlanner(
            gantry, engine_factory=scripted(line_states(6), line_states(30))
        )
        response = planner.plan(request, seed=0)

        assert response.outcome == PlanningOutcome.INITIALIZATION_FAIL
        assert response.trajectory == []
        assert planner.state == PlannerState.INITIALIZATION_FAIL
        assert gantry.ik_calls == 0

    def test_unbounded_joint_fails_initialization(self, door_request):
        joints = list(GANTRY_JOINTS[:4]) + [JointInfo("yaw", JointKind.REVOLUTE, None)]
        kinematics = GantryKinematics(joints=joints)
        planner = ScrewPlanner(
            kinematics, engine_factory=scripted(line_states(6), line_states(30))
        )
        response = planner.plan(door_request, seed=0)

        assert response.outcome == PlanningOutcome.INITIALIZATION_FAIL
        assert response.trajectory == []
        assert planner.engine is None
        assert kinematics.ik_calls == 0

    def test_unreachable_goal(self, drawer_screw):
        kinematics = GantryKinematics()
        request = PlanningRequest(
            screw=drawer_screw,
            theta=3.0,
            start_joint_state=START_JOINTS,
            ee_frame_name="tool0",
        )
        planner = ScrewPlanner(
            kinematics,
            config=PlannerConfig(num_goal=5),
            engine_factory=scripted(line_states(6), line_states(30)),
        )
        response = planner.plan(request, seed=0)

        assert response.outcome == PlanningOutcome.NO_IK_SOLUTION
        assert kinematics.ik_calls == 10
        assert planner.engine is None

    def test_seeded_start_is_the_only_start(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry,
            config=PlannerConfig(num_goal=4),
            engine_factory=scripted(line_states(6), line_states(30)),
        )
        planner.plan(door_request, seed=0)

        starts = planner.engine.starts
        assert len(starts) == 1
        assert starts[0].progress == 0.0
        np.testing.assert_allclose(starts[0].joints, START_JOINTS)

        goals = planner.engine.goal.states
        assert 1 <= len(goals) <= 4
        for state in goals:
            assert state.progress == pytest.approx(THETA)
            pose = gantry.forward_kinematics(state.joints)
            np.testing.assert_allclose(
                np.array(pose.matrix)[:3, 3], [0.0, 0.5, 1.0], atol=1e-9
            )

    def test_wrong_length_start_uses_start_pose(self, gantry, door_screw):
        request = PlanningRequest(
            screw=door_screw,
            theta=THETA,
            start_joint_state=(0.0, 0.5),
            start_pose=PoseSpec(position=(0.5, 0.0, 1.0)),
            ee_frame_name="tool0",
        )
        planner = ScrewPlanner(
            gantry,
            config=PlannerConfig(num_start=3, num_goal=3),
            engine_factory=scripted(line_states(6), line_states(30)),
        )
        response = planner.plan(request, seed=0)

        assert response.outcome == PlanningOutcome.SUCCESS
        for state in planner.engine.starts:
            pose = gantry.forward_kinematics(state.joints)
            np.testing.assert_allclose(
                np.array(pose.matrix)[:3, 3], [0.5, 0.0, 1.0], atol=1e-9
            )

    def test_space_parameters_recorded(self, gantry, door_request):
        planner = ScrewPlanner(
            gantry, engine_factory=scripted(line_states(6), line_states(30))
        )
        planner.plan(door_request, seed=0)

        params = planner.context.params
        assert params.ee_frame_name == "tool0"
        assert params.move_group == "gantry"
        assert planner.context.space.theta_max == pytest.approx(THETA)

    def test_same_seed_same_response(self, gantry, drawer_request):
        config = PlannerConfig(num_start=3, num_goal=3)
        factory = scripted(line_states(6, 0.3), line_states(12, 0.3))

        first = ScrewPlanner(gantry, config=config, engine_factory=factory)
        second = ScrewPlanner(gantry, config=config, engine_factory=factory)
        a = first.plan(drawer_request, seed=7)
        b = second.plan(drawer_request, seed=7)

        assert a == b
        starts_a = [s.joints for s in first.engine.starts]
        starts_b = [s.joints for s in second.engine.starts]
        np.testing.assert_array_equal(starts_a, starts_b)
