import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, Union

from ..pose_detection.pose import JointName, PoseSnapshot
from .config_utils import get_exercise_config, merge_config
from .features import BaseFeature, FeatureSample
from .state_machine import CycleConfig, CycleEvent, CyclePhase, CycleStateMachine, Thresholds


@dataclass
class ExerciseState:
    """Snapshot of an analyzer after one frame."""
    name: str
    phase: str  # e.g., "up", "down", "holding"
    rep_count: int
    feedback: str
    show_positioning_feedback: bool
    is_ready: bool = False  # Calibration finished, reps are being counted
    angles: Dict[str, float] = field(default_factory=dict)  # Metrics read this frame
    detection_mode: Optional[str] = None  # Feature that produced the metric
    seconds_held: Optional[int] = None  # Time-based exercises only
    analysis_reliable: bool = False  # A usable metric was read this frame
    events: List[str] = field(default_factory=list)  # Transitions fired this frame


class ExerciseType(Enum):
    PUSH_UPS = "push_ups"
    SQUATS = "squats"
    PLANK = "plank"

    @property
    def display_name(self) -> str:
        return {"push_ups": "Push-ups", "squats": "Squats", "plank": "Plank"}[self.value]

    @property
    def is_time_based(self) -> bool:
        return self is ExerciseType.PLANK

    @property
    def unit_label(self) -> str:
        return "sec" if self.is_time_based else "rep"

    @classmethod
    def from_value(cls, value: Union["ExerciseType", str]) -> "ExerciseType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown exercise type '{value}'. Expected one of: {choices}") from None


StateListener = Callable[[ExerciseState], None]


# --- Analyzer Registry ---
ANALYZER_REGISTRY: Dict[ExerciseType, Type["BaseExerciseAnalyzer"]] = {}


def register_analyzer(exercise_type: ExerciseType):  # Decorator that adds an analyzer class to the registry when it is defined.
    def decorator(cls):
        cls.exercise_type = exercise_type
        ANALYZER_REGISTRY[exercise_type] = cls
        return cls
    return decorator


def create_analyzer(
    exercise_type: Union[ExerciseType, str],
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None
) -> "BaseExerciseAnalyzer":
    """
    Build the analyzer registered for an exercise.

    Args:
        exercise_type: ExerciseType or its value, e.g. "push_ups"
        config: Optional overrides merged into the exercise's config section
        config_path: Optional path to an alternative exercise config file

    Returns:
        A freshly reset analyzer
    """
    exercise_type = ExerciseType.from_value(exercise_type)
    if exercise_type not in ANALYZER_REGISTRY:
        raise ValueError(f"No analyzer registered for '{exercise_type.value}'")
    return ANALYZER_REGISTRY[exercise_type](config=config, config_path=config_path)


class BaseExerciseAnalyzer(ABC):  # Abstract base class for exercise analysis implementations.
    """
    Common interface of the exercise analyzers.

    An analyzer is fed one pose snapshot per frame through ``analyze`` and keeps
    the count, state and feedback for one session. It is not thread-safe.
    """

    exercise_type: ExerciseType

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None):
        """
        Args:
            config: Optional overrides merged into the exercise's config section
            config_path: Optional path to an alternative exercise config file
        """
        self.config = merge_config(get_exercise_config(self.exercise_type.value, config_path), config)
        self._listeners: List[StateListener] = []
        self._last_state: Optional[ExerciseState] = None

    def analyze(self, pose: Optional[PoseSnapshot], now: Optional[float] = None) -> ExerciseState:
        """
        Analyze a single frame.

        Args:
            pose: Snapshot of the frame, or None when no body was detected
            now: Frame time in seconds. Defaults to the wall clock.

        Returns:
            ExerciseState after this frame. Listeners receive the same object.
        """
        if now is None:
            now = time.time()
        state = self._analyze(pose, now)
        self._last_state = state
        for listener in list(self._listeners):
            listener(state)
        return state

    @abstractmethod
    def _analyze(self, pose: Optional[PoseSnapshot], now: float) -> ExerciseState:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial state. Calling it twice is the same as once."""
        pass

    @property
    @abstractmethod
    def rep_count(self) -> int:
        pass

    @property
    @abstractmethod
    def current_state(self) -> Enum:
        pass

    @property
    @abstractmethod
    def feedback(self) -> str:
        pass

    @property
    @abstractmethod
    def show_positioning_feedback(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @property
    def state(self) -> ExerciseState:
        """Result of the latest frame, or the initial state before any frame."""
        if self._last_state is None:
            return self._build_state(None, [])
        return self._last_state

    def add_listener(self, callback: StateListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def get_exercise_name(self) -> str:
        return self.exercise_type.display_name

    @abstractmethod
    def get_required_joints(self) -> List[JointName]:
        """
        Get the joints the primary metric of this exercise is read from.

        Returns:
            List of required joint names
        """
        pass

    @abstractmethod
    def _build_state(self, sample: Optional[Any], events: List[str]) -> ExerciseState:
        pass


class RepetitionAnalyzer(BaseExerciseAnalyzer):
    """
    Counts high -> low -> high cycles of a per-exercise metric.

    Subclasses supply the features (in priority order), the mapping from the
    generic cycle phases onto their own state enum and a logger name.
    """

    PHASE_STATES: Dict[CyclePhase, Enum] = {}
    logger = logging.getLogger("RepetitionAnalyzer")

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None):
        super().__init__(config, config_path)
        self.thresholds = Thresholds.from_dict(self.config["thresholds"])
        self._machine = CycleStateMachine(CycleConfig.from_dict(self.config))
        self._features = self._build_features()

    @abstractmethod
    def _build_features(self) -> List[BaseFeature]:
        pass

    def reset(self) -> None:
        self._machine.reset()
        for feature in self._features:
            feature.reset()
        self._last_state = None

    @property
    def rep_count(self) -> int:
        return self._machine.rep_count

    @property
    def current_state(self) -> Enum:
        return self.PHASE_STATES[self._machine.phase]

    @property
    def feedback(self) -> str:
        return self._machine.feedback

    @property
    def show_positioning_feedback(self) -> bool:
        return self._machine.show_positioning_feedback

    @property
    def is_ready(self) -> bool:
        return self._machine.is_ready

    def _select_sample(self, pose: PoseSnapshot) -> Optional[FeatureSample]:
        # Every feature sees the frame; the first in priority order wins.
        ready = self._machine.is_ready
        samples = [feature.extract(pose, ready) for feature in self._features]
        return next((sample for sample in samples if sample is not None), None)

    def _analyze(self, pose: Optional[PoseSnapshot], now: float) -> ExerciseState:
        messages = self._machine.config.messages
        if pose is None:
            self._machine.interrupt(now, messages.no_pose, clear_phase=True)
            return self._build_state(None, [])

        sample = self._select_sample(pose)
        if sample is None or not sample.usable:
            self._machine.interrupt(now, (sample.hint if sample is not None else None) or messages.no_metric)
            return self._build_state(sample, [])

        event = self._machine.update(sample.zone, now)
        self.logger.debug(f"{sample.source}={sample.value:.3f} zone={sample.zone.value} phase={self._machine.phase.value}")
        if event is None:
            return self._build_state(sample, [])
        if event is CycleEvent.READY:
            self.logger.info(f"Calibrated on {sample.source}, counting reps")
        elif event is CycleEvent.REP_COMPLETED:
            self.logger.info(f"Rep {self._machine.rep_count} counted ({sample.source})")
        return self._build_state(sample, [event.value])

    def _build_state(self, sample: Optional[FeatureSample], events: List[str]) -> ExerciseState:
        usable = sample is not None and sample.usable
        return ExerciseState(
            name=self.get_exercise_name(),
            phase=self.current_state.value,
            rep_count=self.rep_count,
            feedback=self.feedback,
            show_positioning_feedback=self.show_positioning_feedback,
            is_ready=self.is_ready,
            angles=dict(sample.extras) if sample is not None else {},
            detection_mode=sample.source if usable else None,
            analysis_reliable=usable,
            events=events
        )
