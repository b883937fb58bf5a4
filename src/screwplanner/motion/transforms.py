"""
Pose helpers shared by the screw model, kinematics and validity checks.

Poses are carried as ``compas.geometry.Transformation`` (4x4 isometries);
numerical work is done on numpy copies of the matrix.
"""

from typing import Sequence, Tuple

import numpy as np
from compas.geometry import Frame, Transformation
from scipy.spatial.transform import Rotation


def to_matrix(pose: Transformation) -> np.ndarray:
    """Return the 4x4 homogeneous matrix of a pose as a numpy array."""
    return np.array(pose.matrix, dtype=float)


def from_matrix(matrix: np.ndarray) -> Transformation:
    """Wrap a 4x4 homogeneous matrix as a compas Transformation."""
    return Transformation.from_matrix(np.asarray(matrix, dtype=float).tolist())


def pose_from_position_quaternion(
    position: Sequence[float], quaternion: Sequence[float]
) -> Transformation:
    """
    Build a pose from a position and an (x, y, z, w) quaternion.

    The quaternion is normalized; a zero quaternion raises ValueError.
    """
    matrix = np.eye(4)
    matrix[:3, :3] = Rotation.from_quat(list(quaternion)).as_matrix()
    matrix[:3, 3] = list(position)
    return from_matrix(matrix)


def pose_to_position_quaternion(
    pose: Transformation,
) -> Tuple[list, list]:
    """Split a pose into a position and an (x, y, z, w) quaternion."""
    matrix = to_matrix(pose)
    quaternion = Rotation.from_matrix(matrix[:3, :3]).as_quat()
    return matrix[:3, 3].tolist(), quaternion.tolist()


def pose_from_frame(frame: Frame) -> Transformation:
    """Convert a compas Frame (as returned by forward kinematics) to a pose."""
    return Transformation.from_frame(frame)


def pose_to_frame(pose: Transformation) -> Frame:
    return Frame.from_transformation(pose)


def pose_error(a: Transformation, b: Transformation) -> Tuple[float, float]:
    """
    Distance between two poses.

    Returns:
        (position error in metres, orientation error in radians)
    """
    m_a = to_matrix(a)
    m_b = to_matrix(b)

    pos_error = float(np.linalg.norm(m_a[:3, 3] - m_b[:3, 3]))

    R_error = m_a[:3, :3].T @ m_b[:3, :3]
    orient_error = float(np.arccos(np.clip((np.trace(R_error) - 1) / 2, -1, 1)))

    return pos_error, orient_error
