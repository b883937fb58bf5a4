"""
Collision detection for the screw planner.

This module provides collision checking using PyBullet's physics engine in
headless (DIRECT) mode.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import pybullet as p

from screwplanner.core.exceptions import RobotError
from screwplanner.core.logging import get_logger

logger = get_logger(__name__)


class CollisionChecker:
    """
    Collision detection using PyBullet.

    Wraps PyBullet's collision detection API to check for:
    - Self-collision (robot links colliding with each other)
    - Environment collision (robot colliding with obstacles)

    Each checker owns its own physics client, so independent planners never
    share collision state.
    """

    def __init__(self, urdf_path: str, base_position=(0, 0, 0)):
        """
        Connect to PyBullet and load the robot.

        Args:
            urdf_path: Path to robot URDF file
            base_position: Robot base position
        """
        self.client_id = p.connect(p.DIRECT)
        if self.client_id < 0:
            raise RobotError("Failed to connect to PyBullet")

        try:
            self.robot_id = p.loadURDF(
                urdf_path,
                basePosition=base_position,
                useFixedBase=True,
                flags=p.URDF_USE_SELF_COLLISION,
                physicsClientId=self.client_id,
            )
        except p.error as e:
            p.disconnect(physicsClientId=self.client_id)
            raise RobotError(f"Failed to load URDF into PyBullet: {urdf_path}") from e

        # Joint name -> joint index (PyBullet joint i moves child link i)
        self.joint_name_to_index: Dict[str, int] = {}
        num_joints = p.getNumJoints(self.robot_id, physicsClientId=self.client_id)
        for i in range(num_joints):
            joint_info = p.getJointInfo(self.robot_id, i, physicsClientId=self.client_id)
            self.joint_name_to_index[joint_info[1].decode("utf-8")] = i

        self._obstacles: List[int] = []

    def __enter__(self) -> "CollisionChecker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Disconnect from the physics server."""
        if self.client_id is not None and self.client_id >= 0:
            p.disconnect(physicsClientId=self.client_id)
            self.client_id = None

    def add_box(
        self,
        half_extents: Sequence[float],
        position: Sequence[float],
        orientation: Sequence[float] = (0, 0, 0, 1),
    ) -> int:
        """
        Add a static box obstacle.

        Args:
            half_extents: Half sizes of the box along x, y, z
            position: Box center
            orientation: Quaternion (x, y, z, w)

        Returns:
            PyBullet body ID of the obstacle
        """
        shape = p.createCollisionShape(
            p.GEOM_BOX, halfExtents=list(half_extents), physicsClientId=self.client_id
        )
        body_id = p.createMultiBody(
            baseMass=0,
            baseCollisionShapeIndex=shape,
            basePosition=list(position),
            baseOrientation=list(orientation),
            physicsClientId=self.client_id,
        )
        self._obstacles.append(body_id)
        return body_id

    def set_configuration(self, joint_names: Sequence[str], joint_values: Sequence[float]) -> None:
        """Reset the robot's joints to the given values."""
        for joint_name, joint_value in zip(joint_names, joint_values):
            if joint_name in self.joint_name_to_index:
                p.resetJointState(
                    self.robot_id,
                    self.joint_name_to_index[joint_name],
                    joint_value,
                    physicsClientId=self.client_id,
                )

    def check_self_collision(self) -> bool:
        """
        Check if robot is in self-collision.

        Adjacent links always touch at their joint and are not reported.

        Returns:
            True if collision detected, False otherwise
        """
        num_joints = p.getNumJoints(self.robot_id, physicsClientId=self.client_id)

        for i in range(-1, num_joints):  # -1 for base link
            for j in range(i + 2, num_joints):
                contacts = p.getClosestPoints(
                    bodyA=self.robot_id,
                    bodyB=self.robot_id,
                    distance=0.0,
                    linkIndexA=i,
                    linkIndexB=j,
                    physicsClientId=self.client_id,
                )
                if contacts:
                    return True

        return False

    def check_environment_collision(self) -> bool:
        """
        Check if robot collides with any added obstacle.

        Returns:
            True if collision detected, False otherwise
        """
        for body_id in self._obstacles:
            contacts = p.getClosestPoints(
                bodyA=self.robot_id,
                bodyB=body_id,
                distance=0.0,
                physicsClientId=self.client_id,
            )
            if contacts:
                return True

        return False

    def check_collision(
        self, joint_names: Sequence[str], joint_values: Sequence[float]
    ) -> bool:
        """
        Check if a configuration is in collision.

        Returns:
            True if collision detected, False otherwise
        """
        self.set_configuration(joint_names, joint_values)
        p.performCollisionDetection(physicsClientId=self.client_id)

        if self.check_self_collision():
            return True
        return self.check_environment_collision()

    def get_collision_points(self) -> List[Tuple]:
        """
        Get all current contacts between the robot and the obstacles.

        Returns:
            List of contact tuples (bodyB, linkA, positionOnA)
        """
        all_contacts = []
        for body_id in self._obstacles:
            for contact in p.getClosestPoints(
                bodyA=self.robot_id,
                bodyB=body_id,
                distance=0.0,
                physicsClientId=self.client_id,
            ):
                all_contacts.append((contact[2], contact[3], contact[5]))
        return all_contacts


def build_collision_checker(
    urdf_path: Optional[str], obstacles: Sequence[dict] = ()
) -> Optional[CollisionChecker]:
    """
    Create a checker for a URDF and populate its box obstacles.

    Obstacles are mappings with ``half_extents``, ``position`` and an optional
    ``orientation`` quaternion. Returns None when no URDF is configured.
    """
    if not urdf_path:
        return None

    checker = CollisionChecker(urdf_path)
    for obstacle in obstacles:
        checker.add_box(
            obstacle["half_extents"],
            obstacle["position"],
            obstacle.get("orientation", (0, 0, 0, 1)),
        )
    logger.info("collision_world_ready", urdf=urdf_path, obstacles=len(obstacles))
    return checker
