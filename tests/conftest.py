"""
Pytest configuration and shared fixtures.
"""

import math
import tempfile
from pathlib import Path

import numpy as np
import pytest

from screwplanner.core.config import PlannerConfig
from screwplanner.motion.planner import PlanningRequest, PoseSpec
from screwplanner.motion.screw import ScrewAxis, ScrewConstraint
from screwplanner.motion.space import PlanningContext, build_space
from tests.fakes import START_JOINTS, GantryKinematics


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a sample configuration directory structure."""
    config_dir = temp_dir / "config"
    (config_dir / "robots").mkdir(parents=True)
    (config_dir / "planners").mkdir(parents=True)

    robot_config = """
robot:
  name: "Test Arm"
  urdf_path: "/fake/path/arm.urdf"
  ee_frame: "tool0"

groups:
  arm: [joint_1, joint_2, joint_3]

limits:
  joints:
    joint_1:
      min: -1.5
      max: 1.5
"""
    (config_dir / "robots" / "test_arm.yaml").write_text(robot_config)

    planner_config = """
planner:
  num_start: 3
  num_goal: 4
  solve_time: 2.5
  verify_constraint: false
"""
    (config_dir / "planners" / "fast.yaml").write_text(planner_config)

    return config_dir


@pytest.fixture
def gantry():
    return GantryKinematics()


@pytest.fixture
def start_joints():
    return np.array(START_JOINTS)


@pytest.fixture
def door_screw():
    """Vertical hinge through the planning frame origin."""
    return ScrewAxis(origin=(0.0, 0.0, 0.0), axis=(0.0, 0.0, 1.0), frame_id="world")


@pytest.fixture
def drawer_screw():
    """Straight pull along +x."""
    return ScrewAxis(axis=(1.0, 0.0, 0.0), is_pure_translation=True, frame_id="world")


@pytest.fixture
def door_request(door_screw):
    return PlanningRequest(
        screw=door_screw,
        theta=math.pi / 2,
        start_joint_state=START_JOINTS,
        ee_frame_name="tool0",
        move_group="gantry",
    )


@pytest.fixture
def drawer_request(drawer_screw):
    return PlanningRequest(
        screw=drawer_screw,
        theta=0.3,
        start_pose=PoseSpec(frame_id="world", position=(0.5, 0.0, 1.0)),
        ee_frame_name="tool0",
        move_group="gantry",
    )


@pytest.fixture
def door_context(gantry, door_screw, start_joints):
    """Planning context for a quarter turn of the door from START_JOINTS."""
    constraint = ScrewConstraint.from_screw(
        door_screw, gantry.forward_kinematics(start_joints), math.pi / 2
    )
    space = build_space(gantry, constraint, "tool0", "gantry")
    return PlanningContext(space, gantry, PlannerConfig())
