"""
Pose sources: the per-frame pose data model, detectors and recorded sessions.

The MediaPipe detector lives in ``mediapipe_detector`` and is imported on its
own so the analysis code does not pull in OpenCV or MediaPipe.
"""

from .pose import MIN_JOINT_CONFIDENCE, SKELETON_CONNECTIONS, Joint, JointName, PoseSnapshot
from .base_detector import BasePoseDetector
from .recording import load_pose_recording, parse_pose_recording, save_pose_recording

__all__ = [
    'MIN_JOINT_CONFIDENCE',
    'SKELETON_CONNECTIONS',
    'Joint',
    'JointName',
    'PoseSnapshot',
    'BasePoseDetector',
    'load_pose_recording',
    'parse_pose_recording',
    'save_pose_recording',
]
