"""
Configuration management for screwplanner.

Handles loading, validation, and access to robot and planner configurations.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from screwplanner.core.exceptions import ConfigurationError


class RobotConfig(BaseModel):
    """Robot configuration model."""

    name: str
    urdf_path: str | None = None
    base_frame: str = "base_link"
    ee_frame: str = "tool0"
    # Move group name -> ordered joint names. Empty means one implicit group
    # holding every configurable joint of the URDF.
    groups: dict[str, list[str]] = Field(default_factory=dict)
    joint_limits: dict[str, dict[str, float]] = Field(default_factory=dict)
    obstacles: list[dict[str, Any]] = Field(default_factory=list)


class PlannerConfig(BaseModel):
    """Tuning parameters for one screw planner instance."""

    num_start: int = Field(default=5, ge=1)
    num_goal: int = Field(default=10, ge=1)
    solve_time: float = Field(default=5.0, gt=0.0)
    simplify_time: float = Field(default=1.0, ge=0.0)

    # Final progress must be within this of theta for a valid trajectory
    goal_tolerance: float = Field(default=0.01, gt=0.0)
    dedup_tolerance: float = Field(default=1e-3, ge=0.0)
    sampler_attempts: int = Field(default=10, ge=1)

    verify_constraint: bool = True
    constraint_position_tolerance: float = Field(default=0.01, gt=0.0)
    constraint_orientation_tolerance: float = Field(default=0.05, gt=0.0)

    # Roadmap search engine
    max_neighbors: int = Field(default=10, ge=1)
    longest_valid_segment: float = Field(default=0.05, gt=0.0)
    max_iterations: int = Field(default=5000, ge=1)
    simplify_attempts: int = Field(default=50, ge=0)

    seed: int | None = None


@dataclass
class ConfigManager:
    """
    Central configuration manager for screwplanner.

    Loads and validates configurations from YAML files laid out as::

        config/
            robots/<name>.yaml
            planners/<name>.yaml

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> robot = config.get_robot("ur5")
        >>> planner = config.get_planner("default")
    """

    config_dir: Path
    _robots: dict[str, RobotConfig] = field(default_factory=dict, init=False)
    _planners: dict[str, PlannerConfig] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(
                f"Configuration directory not found: {self.config_dir}"
            )

    def load(self) -> None:
        """Load all configurations from disk."""
        self._load_robots()
        self._load_planners()
        self._loaded = True

    def _load_robots(self) -> None:
        robots_dir = self.config_dir / "robots"
        if not robots_dir.exists():
            return

        for config_file in sorted(robots_dir.glob("*.yaml")):
            data = load_yaml(config_file)
            if not data or "robot" not in data:
                continue

            robot_data = dict(data["robot"])
            if "groups" in data:
                robot_data["groups"] = data["groups"]
            if "limits" in data:
                robot_data["joint_limits"] = data["limits"].get("joints", {})
            if "obstacles" in data:
                robot_data["obstacles"] = data["obstacles"]

            try:
                self._robots[config_file.stem] = RobotConfig(**robot_data)
            except ValidationError as e:
                raise ConfigurationError(
                    f"Failed to load robot config: {config_file}",
                    details={"error": str(e)},
                )

    def _load_planners(self) -> None:
        planners_dir = self.config_dir / "planners"
        if not planners_dir.exists():
            return

        for config_file in sorted(planners_dir.glob("*.yaml")):
            self._planners[config_file.stem] = load_planner_config(config_file)

    def get_robot(self, name: str) -> RobotConfig:
        """
        Get robot configuration by name.

        Args:
            name: Robot configuration name (without .yaml extension)

        Returns:
            RobotConfig instance

        Raises:
            ConfigurationError: If robot not found
        """
        if not self._loaded:
            self.load()

        if name not in self._robots:
            raise ConfigurationError(
                f"Robot configuration not found: {name}",
                details={"available": list(self._robots.keys())},
            )
        return self._robots[name]

    def get_planner(self, name: str) -> PlannerConfig:
        """
        Get planner configuration by name.

        Raises:
            ConfigurationError: If planner config not found
        """
        if not self._loaded:
            self.load()

        if name not in self._planners:
            raise ConfigurationError(
                f"Planner configuration not found: {name}",
                details={"available": list(self._planners.keys())},
            )
        return self._planners[name]

    def list_robots(self) -> list[str]:
        """List available robot configurations."""
        if not self._loaded:
            self.load()
        return list(self._robots.keys())

    def list_planners(self) -> list[str]:
        """List available planner configurations."""
        if not self._loaded:
            self.load()
        return list(self._planners.keys())


def load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML mapping from disk.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML: {path}", details={"error": str(e)}
        )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top level of {path}",
            details={"type": type(data).__name__},
        )
    return data


def load_planner_config(path: str | Path) -> PlannerConfig:
    """
    Load a PlannerConfig from a YAML file.

    The parameters may sit at the top level or under a ``planner`` key.
    """
    data = load_yaml(path)
    data = data.get("planner", data)
    try:
        return PlannerConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Failed to load planner config: {path}",
            details={"error": str(e)},
        )
