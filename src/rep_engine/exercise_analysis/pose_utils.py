"""
pose_utils.py - Shared geometry over pose snapshots.

Every helper is confidence-aware: a joint that is missing from the snapshot makes
the measurement absent (None) instead of raising or defaulting to zero.
"""
from typing import Iterable, Optional, Tuple

import numpy as np

from ..pose_detection.pose import Joint, JointName, PoseSnapshot

# Rays shorter than this are treated as degenerate.
_MIN_RAY_LENGTH = 1e-6

JointTriplet = Tuple[JointName, JointName, JointName]


# --- Math & Geometry Utilities ---
def calculate_angle(a: Joint, b: Joint, c: Joint) -> Optional[float]:
    """
    Calculate the angle at point b formed by the rays b->a and b->c.

    Point ordering convention:
    - a: First point (e.g., shoulder for elbow angle)
    - b: Middle point (e.g., elbow for elbow angle)
    - c: Last point (e.g., wrist for elbow angle)

    Args:
        a: First joint
        b: Vertex joint, the angle is calculated here
        c: Last joint

    Returns:
        Angle in degrees within [0, 180], or None if either ray has no length
    """
    ba = np.array([a.x - b.x, a.y - b.y])
    bc = np.array([c.x - b.x, c.y - b.y])
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < _MIN_RAY_LENGTH or norm_bc < _MIN_RAY_LENGTH:
        return None
    cosine_angle = np.clip(np.dot(ba, bc) / (norm_ba * norm_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine_angle)))


def joint_angle(pose: Optional[PoseSnapshot], a: JointName, b: JointName, c: JointName) -> Optional[float]:
    """Angle at joint b of the snapshot, or None if the pose or any joint is absent."""
    if pose is None:
        return None
    joint_a, joint_b, joint_c = pose.joint(a), pose.joint(b), pose.joint(c)
    if joint_a is None or joint_b is None or joint_c is None:
        return None
    return calculate_angle(joint_a, joint_b, joint_c)


def mean_of_available(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the values that are present, None if there are none."""
    present = [v for v in values if v is not None]
    return float(np.mean(present)) if present else None


def paired_joint_angle(
    pose: Optional[PoseSnapshot],
    left: JointTriplet,
    right: JointTriplet
) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """
    Evaluate the same angle on both body sides.

    Returns:
        Tuple of (mean of the available sides, left angle, right angle)
    """
    left_angle = joint_angle(pose, *left)
    right_angle = joint_angle(pose, *right)
    return mean_of_available([left_angle, right_angle]), left_angle, right_angle


def midpoint_y(
    pose: Optional[PoseSnapshot],
    left: JointName,
    right: JointName,
    require_both: bool = False
) -> Optional[float]:
    """Mean Y of whichever joints of a left/right pair are present, or None if
    ``require_both`` is set and a side is missing."""
    if pose is None:
        return None
    joints = [pose.joint(left), pose.joint(right)]
    if require_both and any(j is None for j in joints):
        return None
    return mean_of_available(j.y if j is not None else None for j in joints)


def head_y(pose: Optional[PoseSnapshot]) -> Optional[float]:
    """
    Vertical position of the head using the best landmark available.

    Priority: nose, eye midpoint, left ear, right ear, shoulder midpoint. The eye
    and shoulder midpoints need both sides to be present.
    """
    if pose is None:
        return None
    nose = pose.joint(JointName.NOSE)
    if nose is not None:
        return nose.y
    left_eye, right_eye = pose.joint(JointName.LEFT_EYE), pose.joint(JointName.RIGHT_EYE)
    if left_eye is not None and right_eye is not None:
        return (left_eye.y + right_eye.y) / 2.0
    for ear in (JointName.LEFT_EAR, JointName.RIGHT_EAR):
        joint = pose.joint(ear)
        if joint is not None:
            return joint.y
    left_shoulder, right_shoulder = pose.joint(JointName.LEFT_SHOULDER), pose.joint(JointName.RIGHT_SHOULDER)
    if left_shoulder is not None and right_shoulder is not None:
        return (left_shoulder.y + right_shoulder.y) / 2.0
    return None
