"""
screwplanner - Screw-constrained motion planning for robot manipulators

Plans joint trajectories in which the end-effector follows a prescribed
screw motion (opening a door, turning a valve) while redundant joints move
freely within their limits.
"""

__version__ = "0.1.0"
__author__ = "screwplanner Contributors"

from screwplanner.core.config import PlannerConfig
from screwplanner.motion.planner import (
    PlanningOutcome,
    PlanningRequest,
    PlanningResponse,
    ScrewPlanner,
)

__all__ = [
    "__version__",
    "PlannerConfig",
    "PlanningOutcome",
    "PlanningRequest",
    "PlanningResponse",
    "ScrewPlanner",
]
