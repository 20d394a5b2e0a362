from enum import Enum
from typing import Any, Dict, List, Optional

from ..pose_detection.pose import JointName, PoseSnapshot
from .base_analyzer import BaseExerciseAnalyzer, ExerciseState, ExerciseType, register_analyzer
from .config_utils import setup_logger
from .features import PlankPositionFeature, PositionCheck
from .state_machine import HoldConfig, HoldEvent, HoldPhase, HoldStateMachine

logger = setup_logger("PlankAnalyzer")


class PlankState(Enum):
    """Plank exercise states."""
    UNKNOWN = "unknown"
    NOT_IN_POSITION = "not_in_position"
    GETTING_IN_POSITION = "getting_in_position"  # Hold-to-start timer running
    HOLDING = "holding"
    BROKEN = "broken"                            # Lost position, time paused


_PHASE_STATES = {phase: PlankState(phase.value) for phase in HoldPhase}


@register_analyzer(ExerciseType.PLANK)
class PlankAnalyzer(BaseExerciseAnalyzer):
    """
    Plank timer.

    Accumulates whole seconds in a horizontal position with the full body in
    frame. Short dropouts (under the grace period) are bridged; longer ones pause
    the timer without losing credited time. Every 20 seconds held is one rep.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None):
        super().__init__(config, config_path)
        self._position = PlankPositionFeature(float(self.config.get("horizontal_tolerance", 0.15)))
        self._machine = HoldStateMachine(HoldConfig.from_dict(self.config))

    def reset(self) -> None:
        self._machine.reset()
        self._last_state = None

    @property
    def rep_count(self) -> int:
        return self._machine.rep_count

    @property
    def seconds_held(self) -> int:
        return self._machine.seconds_held

    @property
    def current_state(self) -> PlankState:
        return _PHASE_STATES[self._machine.phase]

    @property
    def feedback(self) -> str:
        return self._machine.feedback

    @property
    def show_positioning_feedback(self) -> bool:
        return self._machine.show_positioning_feedback

    @property
    def is_ready(self) -> bool:
        return self._machine.is_ready

    def _analyze(self, pose: Optional[PoseSnapshot], now: float) -> ExerciseState:
        check = self._position.evaluate(pose)
        events = self._machine.update(check.valid, now)
        for event in events:
            if event is HoldEvent.READY:
                logger.info("Plank position held, timer started")
            elif event is HoldEvent.BROKEN:
                logger.info(f"Plank broken at {self.seconds_held}s")
            elif event is HoldEvent.RESUMED:
                logger.info(f"Plank resumed at {self.seconds_held}s")
            elif event is HoldEvent.REP_COMPLETED:
                logger.info(f"Plank rep {self.rep_count} completed ({self.seconds_held}s)")
        return self._build_state(check, [event.value for event in events])

    def _build_state(self, check: Optional[PositionCheck], events: List[str]) -> ExerciseState:
        measured = check is not None and bool(check.extras)
        return ExerciseState(
            name=self.get_exercise_name(),
            phase=self.current_state.value,
            rep_count=self.rep_count,
            feedback=self.feedback,
            show_positioning_feedback=self.show_positioning_feedback,
            is_ready=self.is_ready,
            angles=dict(check.extras) if check is not None else {},
            detection_mode=self._position.source if measured else None,
            seconds_held=self.seconds_held,
            analysis_reliable=measured,
            events=events
        )

    def get_required_joints(self) -> List[JointName]:
        return [
            JointName.LEFT_SHOULDER, JointName.RIGHT_SHOULDER,
            JointName.LEFT_HIP, JointName.RIGHT_HIP,
            JointName.LEFT_ANKLE, JointName.RIGHT_ANKLE,
        ]
