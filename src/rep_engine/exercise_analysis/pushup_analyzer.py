from enum import Enum
from typing import List

from ..pose_detection.pose import JointName
from .base_analyzer import ExerciseType, RepetitionAnalyzer, register_analyzer
from .config_utils import setup_logger
from .features import ELBOW_ANGLE, BaseFeature, HeadDisplacementFeature, HeadTrackingConfig, JointAngleFeature
from .state_machine import CyclePhase


class PushupState(Enum):
    """Push-up exercise states."""
    UNKNOWN = "unknown"
    UP = "up"                        # Arms extended
    DOWN = "down"                    # Chest lowered
    TRANSITIONING = "transitioning"  # Between the two


@register_analyzer(ExerciseType.PUSH_UPS)
class PushupAnalyzer(RepetitionAnalyzer):
    """
    Push-up counter.

    Counts on the mean elbow angle (up >= 140, down <= 120). When no arm is
    visible it falls back to how far the head has dropped below its resting
    height, which is learned while holding the up position.
    """

    PHASE_STATES = {
        CyclePhase.UNKNOWN: PushupState.UNKNOWN,
        CyclePhase.HIGH: PushupState.UP,
        CyclePhase.LOW: PushupState.DOWN,
        CyclePhase.TRANSITIONING: PushupState.TRANSITIONING,
    }
    logger = setup_logger("PushupAnalyzer")

    def _build_features(self) -> List[BaseFeature]:
        head_config = HeadTrackingConfig.from_dict(self.config.get("head_tracking"))
        return [
            JointAngleFeature(ELBOW_ANGLE, self.thresholds),
            HeadDisplacementFeature(head_config, hint=self.config.get("messages", {}).get("hold_still", "Hold still...")),
        ]

    @property
    def head_baseline(self):
        """Resting head height learned for the fallback, if any."""
        return self._features[1].baseline

    def get_required_joints(self) -> List[JointName]:
        return [
            JointName.LEFT_SHOULDER, JointName.RIGHT_SHOULDER,
            JointName.LEFT_ELBOW, JointName.RIGHT_ELBOW,
            JointName.LEFT_WRIST, JointName.RIGHT_WRIST,
        ]
