"""
features.py - Turn a pose snapshot into the scalar metric an exercise counts on.

Each exercise lists its features in priority order. All of them observe every
frame (so rolling histories stay current) and the first one that produces a
sample is authoritative for that frame. Metrics from different features are
never blended.
"""
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional, Sequence

import numpy as np

from ..pose_detection.pose import JointName, PoseSnapshot
from .pose_utils import JointTriplet, head_y, midpoint_y, paired_joint_angle
from .state_machine import Thresholds, Zone


@dataclass
class FeatureSample:
    """One frame's reading from a feature."""
    source: str  # Which feature produced the reading, e.g. "elbow_angle"
    value: Optional[float] = None
    zone: Optional[Zone] = None  # None while the reading can't be counted on yet
    hint: Optional[str] = None  # Feedback to show while the reading is unusable
    extras: Dict[str, float] = field(default_factory=dict)

    @property
    def usable(self) -> bool:
        return self.zone is not None


@dataclass(frozen=True)
class AngleSpec:
    """The same joint angle measured on both body sides."""
    name: str
    left: JointTriplet
    right: JointTriplet
    left_label: str
    right_label: str


ELBOW_ANGLE = AngleSpec(
    "elbow_angle",
    (JointName.LEFT_SHOULDER, JointName.LEFT_ELBOW, JointName.LEFT_WRIST),
    (JointName.RIGHT_SHOULDER, JointName.RIGHT_ELBOW, JointName.RIGHT_WRIST),
    "left_elbow", "right_elbow"
)

KNEE_ANGLE = AngleSpec(
    "knee_angle",
    (JointName.LEFT_HIP, JointName.LEFT_KNEE, JointName.LEFT_ANKLE),
    (JointName.RIGHT_HIP, JointName.RIGHT_KNEE, JointName.RIGHT_ANKLE),
    "left_knee", "right_knee"
)

HIP_ANGLE = AngleSpec(
    "hip_angle",
    (JointName.LEFT_SHOULDER, JointName.LEFT_HIP, JointName.LEFT_KNEE),
    (JointName.RIGHT_SHOULDER, JointName.RIGHT_HIP, JointName.RIGHT_KNEE),
    "left_hip", "right_hip"
)


class BaseFeature(ABC):
    """Base class for per-frame metric extractors."""

    source: str = "feature"

    @abstractmethod
    def extract(self, pose: PoseSnapshot, ready: bool) -> Optional[FeatureSample]:
        """
        Read the metric from one frame.

        Args:
            pose: Snapshot of the current frame
            ready: Whether the state machine has finished calibrating

        Returns:
            FeatureSample, or None if the needed joints are not visible
        """
        pass

    def reset(self) -> None:
        """Forget any per-session history."""
        pass


class JointAngleFeature(BaseFeature):
    """
    Mean of a left/right joint angle, using whichever sides are visible.

    Confirmatory angles are measured too and reported in the sample extras, but
    only the primary angle is classified.
    """

    def __init__(self, angle: AngleSpec, thresholds: Thresholds, confirmatory: Sequence[AngleSpec] = ()):
        self.angle = angle
        self.thresholds = thresholds
        self.confirmatory = list(confirmatory)
        self.source = angle.name

    def extract(self, pose: PoseSnapshot, ready: bool) -> Optional[FeatureSample]:
        value, left, right = paired_joint_angle(pose, self.angle.left, self.angle.right)
        if value is None:
            return None

        extras = {self.angle.name: value}
        _put_sides(extras, self.angle, left, right)
        for spec in self.confirmatory:
            mean, spec_left, spec_right = paired_joint_angle(pose, spec.left, spec.right)
            if mean is not None:
                extras[spec.name] = mean
            _put_sides(extras, spec, spec_left, spec_right)

        return FeatureSample(self.source, value, self.thresholds.classify(value), extras=extras)


def _put_sides(extras: Dict[str, float], spec: AngleSpec, left: Optional[float], right: Optional[float]) -> None:
    if left is not None:
        extras[spec.left_label] = left
    if right is not None:
        extras[spec.right_label] = right


@dataclass(frozen=True)
class HeadTrackingConfig:
    history_size: int = 10
    min_history: int = 3  # Readings needed before a displacement counts
    stable_window: int = 5  # Readings that must agree to learn a baseline
    stable_range: float = 0.02  # Max spread (normalized y) of a stable window
    movement_threshold: float = 0.04  # Displacement that means "down"
    return_ratio: float = 0.5  # Fraction of the movement threshold that means "back up"

    def __post_init__(self):
        if self.stable_window < 1 or self.min_history < 1:
            raise ValueError("stable_window and min_history must be at least 1")
        if self.history_size < max(self.stable_window, self.min_history):
            raise ValueError(
                f"history_size ({self.history_size}) must cover stable_window and min_history"
            )
        if self.stable_range <= 0 or self.movement_threshold <= 0:
            raise ValueError("stable_range and movement_threshold must be positive")
        if not 0 < self.return_ratio < 1:
            raise ValueError(f"return_ratio must be between 0 and 1, got {self.return_ratio}")

    @property
    def thresholds(self) -> Thresholds:
        return Thresholds(
            high=self.movement_threshold * self.return_ratio,
            low=self.movement_threshold,
            inverted=True
        )

    @classmethod
    def from_dict(cls, section: Optional[Dict[str, Any]]) -> "HeadTrackingConfig":
        section = section or {}
        return cls(
            history_size=int(section.get("history_size", 10)),
            min_history=int(section.get("min_history", 3)),
            stable_window=int(section.get("stable_window", 5)),
            stable_range=float(section.get("stable_range", 0.02)),
            movement_threshold=float(section.get("movement_threshold", 0.04)),
            return_ratio=float(section.get("return_ratio", 0.5))
        )


class HeadDisplacementFeature(BaseFeature):
    """
    Downward head displacement from a learned resting height.

    Used when the arms can't be seen. The baseline is (re)learned from the most
    recent stable window only while the state machine is still calibrating, and
    is frozen once counting starts. Y grows downward, so a positive value means
    the head has dropped below the baseline.
    """

    source = "head_displacement"

    def __init__(self, config: Optional[HeadTrackingConfig] = None, hint: str = "Hold still..."):
        self.config = config or HeadTrackingConfig()
        self.thresholds = self.config.thresholds
        self.hint = hint
        self._history: Deque[float] = deque(maxlen=self.config.history_size)
        self._baseline: Optional[float] = None

    @property
    def baseline(self) -> Optional[float]:
        return self._baseline

    def reset(self) -> None:
        self._history.clear()
        self._baseline = None

    def extract(self, pose: PoseSnapshot, ready: bool) -> Optional[FeatureSample]:
        current_y = head_y(pose)
        if current_y is None:
            return None
        self._history.append(current_y)

        if not ready:
            self._learn_baseline()

        if self._baseline is None or len(self._history) < self.config.min_history:
            return FeatureSample(self.source, hint=self.hint, extras={"head_y": current_y})

        displacement = current_y - self._baseline
        return FeatureSample(
            self.source,
            displacement,
            self.thresholds.classify(displacement),
            extras={"head_y": current_y, "head_baseline": self._baseline, self.source: displacement}
        )

    def _learn_baseline(self) -> None:
        if len(self._history) < self.config.stable_window:
            return
        window = np.array(list(self._history)[-self.config.stable_window:])
        if window.max() - window.min() < self.config.stable_range:
            self._baseline = float(np.mean(window))


@dataclass
class PositionCheck:
    valid: bool
    extras: Dict[str, float] = field(default_factory=dict)


class PlankPositionFeature:
    """
    Boolean plank check.

    The body counts as horizontal when the mean shoulder height and mean hip
    height differ by less than ``tolerance`` (normalized, not scaled to body
    size). Both shoulders and both hips must be visible, and at least one ankle
    so the whole body is in frame.
    """

    source = "plank_position"

    def __init__(self, tolerance: float = 0.15):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance

    def evaluate(self, pose: Optional[PoseSnapshot]) -> PositionCheck:
        if pose is None:
            return PositionCheck(False)

        shoulder_y = midpoint_y(pose, JointName.LEFT_SHOULDER, JointName.RIGHT_SHOULDER, require_both=True)
        hip_y = midpoint_y(pose, JointName.LEFT_HIP, JointName.RIGHT_HIP, require_both=True)
        if shoulder_y is None or hip_y is None:
            return PositionCheck(False)

        offset = abs(shoulder_y - hip_y)
        extras = {"shoulder_y": shoulder_y, "hip_y": hip_y, "vertical_offset": offset}
        ankle_visible = pose.has_any(JointName.LEFT_ANKLE, JointName.RIGHT_ANKLE)
        return PositionCheck(offset < self.tolerance and ankle_visible, extras)
