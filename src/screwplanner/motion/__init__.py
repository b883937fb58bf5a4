"""
Motion module - Screw-constrained planning.

This module provides:
- The screw constraint model (pose along a screw motion)
- Kinematics providers (compas_robots + scipy IK, pybullet collisions)
- The compound (progress + joints) configuration space
- Screw sampler, validity checker and goal region
- Start/goal synthesis with IK
- A probabilistic roadmap search engine
- The planner that ties them together
"""

from screwplanner.motion.goals import ScrewGoal
from screwplanner.motion.kinematics import (
    CompasKinematics,
    JointInfo,
    JointKind,
    KinematicsProvider,
)
from screwplanner.motion.planner import (
    PlannerState,
    PlanningOutcome,
    PlanningRequest,
    PlanningResponse,
    PoseSpec,
    ScrewPlanner,
)
from screwplanner.motion.roadmap import GeometricPath, RoadmapPlanner, SearchEngine
from screwplanner.motion.sampling import (
    ScrewSampler,
    ScrewValidityChecker,
    StateSampler,
    StateValidityChecker,
)
from screwplanner.motion.screw import ScrewAxis, ScrewConstraint
from screwplanner.motion.space import (
    CompoundSpace,
    CompoundState,
    PlanningContext,
    SpaceParameters,
    build_space,
)
from screwplanner.motion.synthesis import StartGoalSet, StartGoalSynthesizer

__all__ = [
    "ScrewAxis",
    "ScrewConstraint",
    "JointKind",
    "JointInfo",
    "KinematicsProvider",
    "CompasKinematics",
    "CompoundSpace",
    "CompoundState",
    "SpaceParameters",
    "PlanningContext",
    "build_space",
    "StateSampler",
    "StateValidityChecker",
    "ScrewSampler",
    "ScrewValidityChecker",
    "ScrewGoal",
    "StartGoalSet",
    "StartGoalSynthesizer",
    "SearchEngine",
    "GeometricPath",
    "RoadmapPlanner",
    "PlannerState",
    "PlanningOutcome",
    "PlanningRequest",
    "PlanningResponse",
    "PoseSpec",
    "ScrewPlanner",
]
