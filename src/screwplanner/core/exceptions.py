"""
Custom exceptions for screwplanner.

All screwplanner exceptions inherit from ScrewPlannerError for easy catching.
"""

from typing import Any


class ScrewPlannerError(Exception):
    """Base exception for all screwplanner errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(ScrewPlannerError):
    """Raised when configuration is invalid or missing."""

    pass


class RobotError(ScrewPlannerError):
    """Raised when the robot model cannot be loaded or queried."""

    pass


class MotionPlanningError(ScrewPlannerError):
    """Raised when motion planning fails."""

    pass


class InitializationError(MotionPlanningError):
    """Raised when the planning space or its parameters cannot be built."""

    def __init__(
        self,
        message: str,
        joint_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.joint_name = joint_name


class NoIKSolutionError(MotionPlanningError):
    """Raised when no start or goal configuration could be found."""

    pass
