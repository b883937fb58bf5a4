"""
Screw constraint model.

A screw motion is a rotation about, and translation along, a fixed axis. The
amount of motion is a single progress value ``theta``: radians of rotation for
a regular screw, metres of travel for a pure translation.
"""

from typing import Tuple

import numpy as np
from compas.geometry import Rotation, Transformation, Translation
from pydantic import BaseModel, ConfigDict, field_validator

from screwplanner.core.exceptions import InitializationError
from screwplanner.motion.transforms import to_matrix


class ScrewAxis(BaseModel):
    """
    Screw description expressed in ``frame_id``.

    Attributes:
        origin: A point on the screw axis
        axis: Direction of the axis (normalized on construction)
        pitch: Linear displacement per radian of rotation (0 = pure rotation)
        is_pure_translation: If True, theta is a distance along ``axis``
        frame_id: Frame the origin and axis are expressed in
    """

    model_config = ConfigDict(frozen=True)

    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    axis: Tuple[float, float, float]
    pitch: float = 0.0
    is_pure_translation: bool = False
    frame_id: str = ""

    @field_validator("axis")
    @classmethod
    def _normalize_axis(cls, value):
        norm = float(np.linalg.norm(value))
        if norm < 1e-9:
            raise ValueError("screw axis must be a non-zero vector")
        return tuple(float(v) / norm for v in value)

    def transformed(self, transform: Transformation, frame_id: str = "") -> "ScrewAxis":
        """
        Express this screw in another frame.

        Args:
            transform: Maps coordinates of the new frame into the current one
                (i.e. the pose of the new frame in ``frame_id``)
            frame_id: Name of the new frame

        Returns:
            The same physical screw, described in the new frame
        """
        inverse = np.linalg.inv(to_matrix(transform))
        origin = inverse @ np.append(self.origin, 1.0)
        axis = inverse[:3, :3] @ np.asarray(self.axis)
        return ScrewAxis(
            origin=tuple(origin[:3]),
            axis=tuple(axis),
            pitch=self.pitch,
            is_pure_translation=self.is_pure_translation,
            frame_id=frame_id,
        )

    def transform_at(self, theta: float) -> Transformation:
        """Isometry produced by moving ``theta`` along this screw."""
        axis = np.asarray(self.axis)
        if self.is_pure_translation:
            return Translation.from_vector((axis * theta).tolist())

        rotation = Rotation.from_axis_and_angle(
            list(self.axis), theta, point=list(self.origin)
        )
        translation = Translation.from_vector((axis * self.pitch * theta).tolist())
        return rotation * translation


class ScrewConstraint:
    """
    The task constraint: end-effector poses along one screw motion.

    The screw is stored expressed in the start (end-effector) frame, so that
    ``pose_at(theta) = start_pose * screw_transform(theta)``.
    """

    def __init__(self, screw: ScrewAxis, start_pose: Transformation, theta_max: float):
        """
        Initialize the constraint.

        Args:
            screw: Screw in the start frame
            start_pose: Pose of the end-effector at theta = 0 in the planning frame
            theta_max: Total progress of the motion (must be positive)
        """
        if not theta_max > 0:
            raise InitializationError(
                "Screw progress must be positive", details={"theta": theta_max}
            )
        self.screw = screw
        self.start_pose = start_pose
        self.theta_max = float(theta_max)

    @classmethod
    def from_screw(
        cls,
        screw: ScrewAxis,
        start_pose: Transformation,
        theta_max: float,
        start_frame: str = "",
    ) -> "ScrewConstraint":
        """
        Build a constraint from a screw given in the planning frame.

        Args:
            screw: Screw expressed in the planning frame
            start_pose: Planning frame -> start (end-effector) frame
            theta_max: Total progress of the motion
            start_frame: Name recorded as the transformed screw's frame
        """
        return cls(screw.transformed(start_pose, start_frame), start_pose, theta_max)

    def screw_transform(self, theta: float) -> Transformation:
        self._check_progress(theta)
        return self.screw.transform_at(theta)

    def pose_at(self, theta: float) -> Transformation:
        """End-effector pose in the planning frame after ``theta`` of progress."""
        return self.start_pose * self.screw_transform(theta)

    @property
    def goal_pose(self) -> Transformation:
        return self.pose_at(self.theta_max)

    def _check_progress(self, theta: float) -> None:
        if theta < 0.0 or theta > self.theta_max:
            raise ValueError(
                f"Progress {theta} outside of [0, {self.theta_max}]"
            )

    def __repr__(self) -> str:
        return (
            f"ScrewConstraint(axis={self.screw.axis}, origin={self.screw.origin}, "
            f"pitch={self.screw.pitch}, theta_max={self.theta_max})"
        )
