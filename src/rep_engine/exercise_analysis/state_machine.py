"""
state_machine.py - Generic hysteresis state machines behind every exercise analyzer.

CycleStateMachine counts discrete high -> low -> high cycles (push-ups, squats).
HoldStateMachine accumulates time spent in a valid position (plank).

Both start with a hold-to-start calibration: the qualifying signal must be held
continuously for ``calibration_hold`` seconds before anything is counted.
Neither machine reads a clock; every call receives ``now`` in seconds.
"""
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .config_utils import setup_logger

logger = setup_logger("RepStateMachine")

# Tolerance when flooring summed frame intervals into whole seconds.
_SECONDS_EPSILON = 1e-6


class Zone(Enum):
    """Where a metric sits relative to a hysteresis threshold pair."""
    HIGH = "high"
    LOW = "low"
    BETWEEN = "between"


class CalibrationStatus(Enum):
    AWAITING = "awaiting_calibration"
    CALIBRATING = "calibrating"
    READY = "ready"


class CyclePhase(Enum):
    UNKNOWN = "unknown"
    HIGH = "high"
    LOW = "low"
    TRANSITIONING = "transitioning"


class CycleEvent(Enum):
    READY = "ready"
    LOW_REACHED = "low_reached"
    REP_COMPLETED = "rep_completed"


class HoldPhase(Enum):
    UNKNOWN = "unknown"
    NOT_IN_POSITION = "not_in_position"
    GETTING_IN_POSITION = "getting_in_position"
    HOLDING = "holding"
    BROKEN = "broken"


class HoldEvent(Enum):
    READY = "ready"
    SECOND_ELAPSED = "second_elapsed"
    REP_COMPLETED = "rep_completed"
    BROKEN = "broken"
    RESUMED = "resumed"


@dataclass(frozen=True)
class Thresholds:
    """
    High/low threshold pair with a dead zone between them.

    For angles the "high" region is ``value >= high`` and the "low" region is
    ``value <= low``. With ``inverted`` (e.g. downward displacement, where a small
    value means "up") the high region is ``value < high`` and the low region is
    ``value > low``.
    """
    high: float
    low: float
    inverted: bool = False

    def __post_init__(self):
        if not self.inverted and self.high <= self.low:
            raise ValueError(f"High threshold ({self.high}) must be above low threshold ({self.low})")
        if self.inverted and self.high >= self.low:
            raise ValueError(f"Inverted high threshold ({self.high}) must be below low threshold ({self.low})")

    def classify(self, value: float) -> Zone:
        if self.inverted:
            if value < self.high:
                return Zone.HIGH
            if value > self.low:
                return Zone.LOW
            return Zone.BETWEEN
        if value >= self.high:
            return Zone.HIGH
        if value <= self.low:
            return Zone.LOW
        return Zone.BETWEEN

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "Thresholds":
        return cls(high=float(section["high"]), low=float(section["low"]), inverted=bool(section.get("inverted", False)))


@dataclass(frozen=True)
class StateMessages:
    """User-facing feedback strings."""
    no_pose: str = "Position yourself in frame"
    no_metric: str = "Position yourself in frame"
    hold: str = "Hold position..."
    at_low_extreme: str = "Get into position"
    not_in_position: str = "Get into position"
    broken: str = "Get back into position!"

    @classmethod
    def from_dict(cls, section: Optional[Dict[str, str]]) -> "StateMessages":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (section or {}).items() if k in known})


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class CycleConfig:
    debounce: float  # Minimum seconds between phase transitions
    calibration_hold: float = 1.0  # Seconds the high position must be held before counting
    messages: StateMessages = field(default_factory=StateMessages)

    def __post_init__(self):
        if self.debounce < 0:
            raise ValueError(f"debounce must not be negative, got {self.debounce}")
        _require_positive("calibration_hold", self.calibration_hold)

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "CycleConfig":
        return cls(
            debounce=float(section["debounce"]),
            calibration_hold=float(section.get("calibration_hold", 1.0)),
            messages=StateMessages.from_dict(section.get("messages"))
        )


@dataclass(frozen=True)
class HoldConfig:
    calibration_hold: float = 1.0
    grace_period: float = 0.5  # Seconds a lost position is still honored
    seconds_per_rep: int = 20  # Rep quantum
    messages: StateMessages = field(default_factory=StateMessages)

    def __post_init__(self):
        _require_positive("calibration_hold", self.calibration_hold)
        _require_positive("seconds_per_rep", self.seconds_per_rep)
        if self.grace_period < 0:
            raise ValueError(f"grace_period must not be negative, got {self.grace_period}")

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "HoldConfig":
        return cls(
            calibration_hold=float(section.get("calibration_hold", 1.0)),
            grace_period=float(section.get("grace_period", 0.5)),
            seconds_per_rep=int(section.get("seconds_per_rep", 20)),
            messages=StateMessages.from_dict(section.get("messages"))
        )


class CycleStateMachine:
    """
    Counts high -> low -> high cycles of a metric zone.

    A rep is counted only when the high zone is reached after a completed low
    phase, so jitter around the high threshold never counts. Transitions are
    debounced: a frame arriving less than ``debounce`` seconds after the last
    transition changes nothing.
    """

    def __init__(self, config: CycleConfig):
        self.config = config
        self.reset()

    def reset(self) -> None:
        self._rep_count = 0
        self._phase = CyclePhase.UNKNOWN
        self._calibration = CalibrationStatus.AWAITING
        self._calibration_started_at: Optional[float] = None
        self._last_transition_at: Optional[float] = None
        self._in_low_phase = False
        self._completed_low_phase = False
        self._feedback = self.config.messages.no_pose
        self._show_positioning_feedback = True

    @property
    def rep_count(self) -> int:
        return self._rep_count

    @property
    def phase(self) -> CyclePhase:
        return self._phase

    @property
    def calibration(self) -> CalibrationStatus:
        return self._calibration

    @property
    def calibration_started_at(self) -> Optional[float]:
        return self._calibration_started_at

    @property
    def last_transition_at(self) -> Optional[float]:
        return self._last_transition_at

    @property
    def is_ready(self) -> bool:
        return self._calibration is CalibrationStatus.READY

    @property
    def in_low_phase(self) -> bool:
        return self._in_low_phase

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def show_positioning_feedback(self) -> bool:
        return self._show_positioning_feedback

    def interrupt(self, now: float, message: str, clear_phase: bool = False) -> None:
        """
        Handle a frame without a usable metric.

        During calibration the hold timer restarts and ``message`` is shown.
        Counting flags and the rep count are kept.
        """
        if not self.is_ready:
            self._calibration = CalibrationStatus.AWAITING
            self._calibration_started_at = None
            self._feedback = message
            self._show_positioning_feedback = True
        if clear_phase:
            self._phase = CyclePhase.UNKNOWN

    def show_hint(self, message: str) -> None:
        """Replace the positioning feedback while not yet counting."""
        if not self.is_ready:
            self._feedback = message
            self._show_positioning_feedback = True

    def update(self, zone: Zone, now: float) -> Optional[CycleEvent]:
        if not self.is_ready:
            return self._calibrate(zone, now)

        if self._last_transition_at is not None and now - self._last_transition_at < self.config.debounce:
            return None

        if zone is Zone.LOW and not self._in_low_phase:
            logger.debug(f"Low phase reached at {now:.2f}s")
            self._in_low_phase = True
            self._completed_low_phase = True
            self._phase = CyclePhase.LOW
            self._last_transition_at = now
            return CycleEvent.LOW_REACHED
        if zone is Zone.HIGH and self._in_low_phase and self._completed_low_phase:
            self._rep_count += 1
            self._in_low_phase = False
            self._completed_low_phase = False
            self._phase = CyclePhase.HIGH
            self._last_transition_at = now
            return CycleEvent.REP_COMPLETED
        if zone is Zone.HIGH and not self._in_low_phase:
            self._phase = CyclePhase.HIGH
        elif zone is Zone.BETWEEN:
            self._phase = CyclePhase.TRANSITIONING
        return None

    def _calibrate(self, zone: Zone, now: float) -> Optional[CycleEvent]:
        messages = self.config.messages
        if zone is not Zone.HIGH:
            self._calibration = CalibrationStatus.AWAITING
            self._calibration_started_at = None
            self._feedback = messages.at_low_extreme if zone is Zone.LOW else messages.not_in_position
            self._show_positioning_feedback = True
            return None

        if self._calibration_started_at is None:
            self._calibration = CalibrationStatus.CALIBRATING
            self._calibration_started_at = now
            self._feedback = messages.hold
            self._show_positioning_feedback = True
            return None

        if now - self._calibration_started_at >= self.config.calibration_hold:
            logger.debug(f"Calibration held for {now - self._calibration_started_at:.2f}s, counting")
            self._calibration = CalibrationStatus.READY
            self._phase = CyclePhase.HIGH
            self._last_transition_at = now
            self._feedback = ""
            self._show_positioning_feedback = False
            return CycleEvent.READY
        return None


class HoldStateMachine:
    """
    Accumulates time spent in a valid position.

    A signal that drops out for less than ``grace_period`` seconds is still
    treated as held. Beyond that the hold is broken: accumulation pauses and
    resumes from where it left off, without crediting the gap, once the
    position is valid again. Every ``seconds_per_rep`` seconds of accumulated
    hold counts as one rep.
    """

    def __init__(self, config: HoldConfig):
        self.config = config
        self.reset()

    def reset(self) -> None:
        self._rep_count = 0
        self._seconds_held = 0
        self._held_duration = 0.0
        self._phase = HoldPhase.UNKNOWN
        self._calibration = CalibrationStatus.AWAITING
        self._calibration_started_at: Optional[float] = None
        self._last_valid_at: Optional[float] = None
        self._last_tick_at: Optional[float] = None
        self._is_holding = False
        self._feedback = self.config.messages.not_in_position
        self._show_positioning_feedback = True

    @property
    def rep_count(self) -> int:
        return self._rep_count

    @property
    def seconds_held(self) -> int:
        return self._seconds_held

    @property
    def held_duration(self) -> float:
        return self._held_duration

    @property
    def phase(self) -> HoldPhase:
        return self._phase

    @property
    def calibration(self) -> CalibrationStatus:
        return self._calibration

    @property
    def calibration_started_at(self) -> Optional[float]:
        return self._calibration_started_at

    @property
    def last_valid_at(self) -> Optional[float]:
        return self._last_valid_at

    @property
    def last_tick_at(self) -> Optional[float]:
        return self._last_tick_at

    @property
    def is_ready(self) -> bool:
        return self._calibration is CalibrationStatus.READY

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def show_positioning_feedback(self) -> bool:
        return self._show_positioning_feedback

    def is_effectively_holding(self, valid: bool, now: float) -> bool:
        if valid:
            return True
        return self._last_valid_at is not None and now - self._last_valid_at < self.config.grace_period

    def update(self, valid: bool, now: float) -> List[HoldEvent]:
        if valid:
            self._last_valid_at = now
        holding = self.is_effectively_holding(valid, now)

        if not self.is_ready:
            return self._calibrate(holding, now)

        if not holding:
            if self._is_holding:
                logger.debug(f"Hold broken at {now:.2f}s, last valid frame at {self._last_valid_at}")
                self._is_holding = False
                self._phase = HoldPhase.BROKEN
                self._feedback = self.config.messages.broken
                self._show_positioning_feedback = True
                return [HoldEvent.BROKEN]
            return []

        events = []
        if not self._is_holding:
            # Resume from a pause: the broken gap is not credited.
            self._is_holding = True
            self._phase = HoldPhase.HOLDING
            self._feedback = ""
            self._show_positioning_feedback = False
            self._last_tick_at = now
            events.append(HoldEvent.RESUMED)

        if self._last_tick_at is not None:
            self._held_duration += max(0.0, now - self._last_tick_at)
            seconds = int(math.floor(self._held_duration + _SECONDS_EPSILON))
            if seconds > self._seconds_held:
                self._seconds_held = seconds
                events.append(HoldEvent.SECOND_ELAPSED)
                reps = self._seconds_held // self.config.seconds_per_rep
                if reps > self._rep_count:
                    self._rep_count = reps
                    events.append(HoldEvent.REP_COMPLETED)
        self._last_tick_at = now
        return events

    def _calibrate(self, holding: bool, now: float) -> List[HoldEvent]:
        messages = self.config.messages
        if not holding:
            self._calibration = CalibrationStatus.AWAITING
            self._calibration_started_at = None
            self._phase = HoldPhase.NOT_IN_POSITION
            self._feedback = messages.not_in_position
            self._show_positioning_feedback = True
            return []

        if self._calibration_started_at is None:
            self._calibration = CalibrationStatus.CALIBRATING
            self._calibration_started_at = now
            self._phase = HoldPhase.GETTING_IN_POSITION
            self._feedback = messages.hold
            self._show_positioning_feedback = True
            return []

        if now - self._calibration_started_at >= self.config.calibration_hold:
            self._calibration = CalibrationStatus.READY
            self._is_holding = True
            self._phase = HoldPhase.HOLDING
            self._feedback = ""
            self._show_positioning_feedback = False
            self._last_tick_at = now
            return [HoldEvent.READY]
        return []
