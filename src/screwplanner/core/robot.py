"""
Robot model management for screwplanner.

Handles robot model loading, URDF parsing, and move group resolution using
compas_robots.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any

from compas_robots import RobotModel

from screwplanner.core.config import RobotConfig
from screwplanner.core.exceptions import RobotError

if TYPE_CHECKING:
    from screwplanner.motion.kinematics import CompasKinematics


class RobotLoader:
    """Loads robot models from URDF and configuration files."""

    @classmethod
    def load_from_urdf(cls, urdf_path: str | Path, **kwargs: Any) -> RobotModel:
        """
        Load robot model from URDF file.

        Args:
            urdf_path: Path to URDF file

        Returns:
            compas_robots RobotModel instance

        Raises:
            RobotError: If URDF loading fails
        """
        path = Path(urdf_path)

        if not path.exists():
            raise RobotError(f"URDF file not found: {path}")

        try:
            return RobotModel.from_urdf_file(str(path))
        except Exception as e:
            raise RobotError(f"Failed to load URDF from {path}: {e}") from e

    @classmethod
    def load_from_config(cls, config: RobotConfig) -> "RobotInstance":
        """
        Load robot from a RobotConfig.

        Raises:
            RobotError: If the config has no URDF or loading fails
        """
        if not config.urdf_path:
            raise RobotError(
                f"Robot '{config.name}' has no URDF path specified in configuration"
            )

        model = cls.load_from_urdf(config.urdf_path)
        return RobotInstance(model=model, config=config)


class RobotInstance:
    """
    A loaded robot model together with its configuration.

    Resolves move groups to joint lists and builds kinematics providers
    for them.
    """

    def __init__(self, model: RobotModel, config: RobotConfig) -> None:
        self.model = model
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    def get_joint_names(self) -> list[str]:
        """Configurable joints of the whole model, in model order."""
        return [joint.name for joint in self.model.joints if joint.is_configurable()]

    def get_link_names(self) -> list[str]:
        return [link.name for link in self.model.links]

    def group_names(self) -> list[str]:
        return list(self.config.groups.keys())

    def group_joints(self, group: str | None = None) -> list[str]:
        """
        Joint names of a move group.

        Args:
            group: Move group name; None or "" selects every configurable joint

        Raises:
            RobotError: If the group is not configured
        """
        if not group:
            return self.get_joint_names()

        if group not in self.config.groups:
            raise RobotError(
                f"Move group not found: {group}",
                details={"available": self.group_names()},
            )
        return list(self.config.groups[group])

    def apply_joint_limits(self) -> None:
        """
        Overwrite URDF joint limits with the configured ones.

        Configured limits use ``min``/``max`` keys in radians or metres.
        """
        for joint in self.model.joints:
            override = self.config.joint_limits.get(joint.name)
            if not override or joint.limit is None:
                continue
            joint.limit.lower = override.get("min", joint.limit.lower)
            joint.limit.upper = override.get("max", joint.limit.upper)

    def build_kinematics(
        self,
        group: str | None = None,
        ee_frame: str | None = None,
        with_collision: bool = True,
    ) -> "CompasKinematics":
        """
        Create a kinematics provider for a move group.

        Args:
            group: Move group name
            ee_frame: End-effector link (default: configured ``ee_frame``)
            with_collision: Load the URDF into PyBullet for collision checks

        Returns:
            CompasKinematics for the group
        """
        from screwplanner.motion.collision import build_collision_checker
        from screwplanner.motion.kinematics import CompasKinematics

        self.apply_joint_limits()
        checker = None
        if with_collision:
            checker = build_collision_checker(self.config.urdf_path, self.config.obstacles)

        return CompasKinematics(
            self.model,
            joint_names=self.group_joints(group),
            ee_frame=ee_frame or self.config.ee_frame,
            collision_checker=checker,
        )

    def __repr__(self) -> str:
        return (
            f"RobotInstance(name='{self.name}', "
            f"joints={len(self.get_joint_names())}, "
            f"groups={self.group_names()})"
        )
