from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .pose import MIN_JOINT_CONFIDENCE, JointName, PoseSnapshot


class BasePoseDetector(ABC):
    """Base class for pose detection implementations."""

    def __init__(self, min_joint_confidence: float = MIN_JOINT_CONFIDENCE, max_frame_rate: float = 30.0):
        """
        Args:
            min_joint_confidence: Joints at or below this confidence are dropped
            max_frame_rate: Frames per second handed on to the analyzer at most
        """
        if max_frame_rate <= 0:
            raise ValueError(f"max_frame_rate must be positive, got {max_frame_rate}")
        self.min_joint_confidence = min_joint_confidence
        self.min_frame_interval = 1.0 / max_frame_rate
        self._last_processed_at: Optional[float] = None

    def should_process(self, now: float) -> bool:
        """
        Frame throttle. Returns False for frames arriving sooner than the
        minimum interval after the last accepted one.
        """
        if self._last_processed_at is not None and now - self._last_processed_at < self.min_frame_interval:
            return False
        self._last_processed_at = now
        return True

    @abstractmethod
    def detect(self, frame: np.ndarray) -> Optional[PoseSnapshot]:
        """
        Detect the body pose in the given frame.

        Args:
            frame: Input BGR frame as numpy array

        Returns:
            PoseSnapshot of the joints that passed the confidence floor, or None
            if no body was found
        """
        pass

    def get_joint_names(self) -> List[JointName]:
        """Get the list of joints this detector provides."""
        return list(JointName)

    def close(self) -> None:
        """Release model resources."""
        pass
