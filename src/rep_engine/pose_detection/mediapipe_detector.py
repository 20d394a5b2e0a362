import logging
import os
import urllib.request
from typing import Dict, Optional

import cv2
import numpy as np

from .base_detector import BasePoseDetector  # Abstract base class
from .pose import MIN_JOINT_CONFIDENCE, Joint, JointName, PoseSnapshot

logger = logging.getLogger("PoseDetector")

# MediaPipe Pose landmark indices of the tracked joints (out of 33).
MEDIAPIPE_LANDMARK_INDEX: Dict[JointName, int] = {
    JointName.NOSE: 0,
    JointName.LEFT_EYE: 2,
    JointName.RIGHT_EYE: 5,
    JointName.LEFT_EAR: 7,
    JointName.RIGHT_EAR: 8,
    JointName.LEFT_SHOULDER: 11,
    JointName.RIGHT_SHOULDER: 12,
    JointName.LEFT_ELBOW: 13,
    JointName.RIGHT_ELBOW: 14,
    JointName.LEFT_WRIST: 15,
    JointName.RIGHT_WRIST: 16,
    JointName.LEFT_HIP: 23,
    JointName.RIGHT_HIP: 24,
    JointName.LEFT_KNEE: 25,
    JointName.RIGHT_KNEE: 26,
    JointName.LEFT_ANKLE: 27,
    JointName.RIGHT_ANKLE: 28,
}

# Pose Landmarker model (lite = faster, CPU-friendly)
_POSE_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task"
_POSE_MODEL_FILENAME = "pose_landmarker_lite.task"
_DEFAULT_CACHE_DIR = os.path.join(os.path.expanduser("~"), ".cache", "rep_engine")


def _get_model_path(cache_dir: Optional[str] = None) -> str:
    """Return path to the pose landmarker model, downloading it if needed."""
    cache_dir = cache_dir or _DEFAULT_CACHE_DIR
    os.makedirs(cache_dir, exist_ok=True)
    path = os.path.join(cache_dir, _POSE_MODEL_FILENAME)
    if not os.path.isfile(path):
        logger.info(f"Downloading pose model to {path}")
        urllib.request.urlretrieve(_POSE_MODEL_URL, path)
    return path


def snapshot_from_mediapipe(landmarks, min_confidence: float = MIN_JOINT_CONFIDENCE) -> Optional[PoseSnapshot]:
    """
    Convert a sequence of 33 MediaPipe normalized landmarks to a PoseSnapshot.

    Visibility is used as the joint confidence.
    """
    joints = {}
    for name, idx in MEDIAPIPE_LANDMARK_INDEX.items():
        if idx >= len(landmarks):
            continue
        landmark = landmarks[idx]
        visibility = getattr(landmark, "visibility", None)
        joints[name] = Joint(float(landmark.x), float(landmark.y), float(visibility or 0.0))
    snapshot = PoseSnapshot(joints, min_confidence)
    return snapshot if len(snapshot) else None


class MediaPipePoseDetector(BasePoseDetector):  # Concrete implementation of the abstract "BasePoseDetector" class.
    """
    MediaPipe implementation of pose detection.

    Uses the Pose Landmarker task (MediaPipe 0.10+) and falls back to the legacy
    ``solutions.pose`` API when the task can't be created.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        min_joint_confidence: float = MIN_JOINT_CONFIDENCE,
        max_frame_rate: float = 30.0,
        model_path: Optional[str] = None,
        cache_dir: Optional[str] = None
    ):
        """
        Initialize the MediaPipe pose detector.

        Args:
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
            min_joint_confidence: Joints at or below this visibility are dropped
            max_frame_rate: Frames per second handed on to the analyzer at most
            model_path: Optional local .task model for the Pose Landmarker
            cache_dir: Where to download the model when no path is given
        """
        super().__init__(min_joint_confidence, max_frame_rate)
        try:
            self._pose = self._create_landmarker(
                model_path or _get_model_path(cache_dir), min_detection_confidence, min_tracking_confidence
            )
            self._uses_tasks_api = True
        except Exception as e:
            logger.warning(f"Pose Landmarker unavailable ({e}), using legacy MediaPipe pose")
            import mediapipe as mp
            self._pose = mp.solutions.pose.Pose(
                static_image_mode=False,
                model_complexity=1,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence
            )
            self._uses_tasks_api = False

    @staticmethod
    def _create_landmarker(model_path: str, min_detection_confidence: float, min_tracking_confidence: float):
        from mediapipe.tasks.python.core import base_options
        from mediapipe.tasks.python.vision import PoseLandmarker, PoseLandmarkerOptions
        from mediapipe.tasks.python.vision.core import vision_task_running_mode

        options = PoseLandmarkerOptions(
            base_options=base_options.BaseOptions(model_asset_path=model_path),
            running_mode=vision_task_running_mode.VisionTaskRunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_pose_presence_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        return PoseLandmarker.create_from_options(options)

    def detect(self, frame: np.ndarray) -> Optional[PoseSnapshot]:
        # Convert BGR to RGB
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        if self._uses_tasks_api:
            from mediapipe.tasks.python.vision.core import image as mp_image
            result = self._pose.detect(mp_image.Image(image_format=mp_image.ImageFormat.SRGB, data=frame_rgb))
            if not result.pose_landmarks:
                return None
            return snapshot_from_mediapipe(result.pose_landmarks[0], self.min_joint_confidence)

        results = self._pose.process(frame_rgb)
        if not results.pose_landmarks:
            return None
        return snapshot_from_mediapipe(results.pose_landmarks.landmark, self.min_joint_confidence)

    def close(self) -> None:
        self._pose.close()
