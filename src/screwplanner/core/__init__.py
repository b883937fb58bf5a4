"""
Core module - Shared utilities, configuration, and exceptions.
"""

from screwplanner.core.config import (
    ConfigManager,
    PlannerConfig,
    RobotConfig,
    load_planner_config,
)
from screwplanner.core.exceptions import (
    ConfigurationError,
    InitializationError,
    MotionPlanningError,
    NoIKSolutionError,
    RobotError,
    ScrewPlannerError,
)

__all__ = [
    # Config
    "ConfigManager",
    "PlannerConfig",
    "RobotConfig",
    "load_planner_config",
    # Exceptions
    "ScrewPlannerError",
    "ConfigurationError",
    "RobotError",
    "MotionPlanningError",
    "InitializationError",
    "NoIKSolutionError",
]
