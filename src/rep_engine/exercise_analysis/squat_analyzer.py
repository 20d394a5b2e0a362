from enum import Enum
from typing import List

from ..pose_detection.pose import JointName
from .base_analyzer import ExerciseType, RepetitionAnalyzer, register_analyzer
from .config_utils import setup_logger
from .features import HIP_ANGLE, KNEE_ANGLE, BaseFeature, JointAngleFeature
from .state_machine import CyclePhase


class SquatState(Enum):
    """Squat exercise states."""
    UNKNOWN = "unknown"
    STANDING = "standing"
    SQUATTING = "squatting"
    TRANSITIONING = "transitioning"


@register_analyzer(ExerciseType.SQUATS)
class SquatAnalyzer(RepetitionAnalyzer):
    """
    Squat counter on the mean knee angle (standing >= 150, squatting <= 120).

    The hip angle is reported alongside for display but does not gate a rep.
    """

    PHASE_STATES = {
        CyclePhase.UNKNOWN: SquatState.UNKNOWN,
        CyclePhase.HIGH: SquatState.STANDING,
        CyclePhase.LOW: SquatState.SQUATTING,
        CyclePhase.TRANSITIONING: SquatState.TRANSITIONING,
    }
    logger = setup_logger("SquatAnalyzer")

    def _build_features(self) -> List[BaseFeature]:
        return [JointAngleFeature(KNEE_ANGLE, self.thresholds, confirmatory=[HIP_ANGLE])]

    def get_required_joints(self) -> List[JointName]:
        return [
            JointName.LEFT_HIP, JointName.RIGHT_HIP,
            JointName.LEFT_KNEE, JointName.RIGHT_KNEE,
            JointName.LEFT_ANKLE, JointName.RIGHT_ANKLE,
        ]
