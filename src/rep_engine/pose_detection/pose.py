"""
pose.py - Per-frame body pose data model shared by detectors and analyzers.

Coordinates are normalized image coordinates: origin at the top-left corner,
x to the right, y increasing downward.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

# Detector-level acceptance floor. Joints at or below it never enter a snapshot.
MIN_JOINT_CONFIDENCE = 0.1


class JointName(Enum):
    """The 17 body landmarks tracked by the engine."""
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


@dataclass(frozen=True)
class Joint:
    """A single detected landmark."""
    x: float
    y: float
    confidence: float


class PoseSnapshot:
    """
    Joints detected in one frame.

    Only joints whose confidence is strictly above the acceptance floor are kept,
    so a joint is present if and only if it passed the floor. A frame with no
    body is represented by ``None`` rather than an empty snapshot.
    """

    def __init__(self, joints: Mapping[JointName, Joint], min_confidence: float = MIN_JOINT_CONFIDENCE):
        self._joints: Dict[JointName, Joint] = {
            name: joint for name, joint in joints.items() if joint.confidence > min_confidence
        }

    @classmethod
    def from_landmarks(
        cls,
        landmarks: Optional[Mapping[str, Sequence[float]]],
        min_confidence: float = MIN_JOINT_CONFIDENCE
    ) -> Optional["PoseSnapshot"]:
        """
        Build a snapshot from a detector-style landmark dictionary.

        Args:
            landmarks: {name: [x, y, confidence]} or {name: [x, y, z, visibility]}.
                Names that are not one of the 17 tracked joints are ignored.
            min_confidence: Acceptance floor for each joint

        Returns:
            PoseSnapshot, or None if no tracked joint passed the floor
        """
        if not landmarks:
            return None
        joints = {}
        for name in JointName:
            values = landmarks.get(name.value)
            if values is None or len(values) < 3:
                continue
            confidence = values[3] if len(values) > 3 else values[2]
            joints[name] = Joint(float(values[0]), float(values[1]), float(confidence))
        snapshot = cls(joints, min_confidence)
        return snapshot if len(snapshot) else None

    def joint(self, name: JointName) -> Optional[Joint]:
        return self._joints.get(name)

    def has_any(self, *names: JointName) -> bool:
        return any(name in self._joints for name in names)

    @property
    def joint_names(self) -> List[JointName]:
        return list(self._joints)

    def to_landmarks(self) -> Dict[str, List[float]]:
        """Inverse of ``from_landmarks`` using the [x, y, confidence] layout."""
        return {name.value: [j.x, j.y, j.confidence] for name, j in self._joints.items()}

    def __contains__(self, name: JointName) -> bool:
        return name in self._joints

    def __iter__(self) -> Iterator[JointName]:
        return iter(self._joints)

    def __len__(self) -> int:
        return len(self._joints)

    def __repr__(self) -> str:
        return f"PoseSnapshot({len(self._joints)} joints)"


# Bone pairs drawn by skeleton overlays.
SKELETON_CONNECTIONS: List[Tuple[JointName, JointName]] = [
    # Upper body
    (JointName.LEFT_SHOULDER, JointName.RIGHT_SHOULDER),
    (JointName.LEFT_SHOULDER, JointName.LEFT_ELBOW),
    (JointName.LEFT_ELBOW, JointName.LEFT_WRIST),
    (JointName.RIGHT_SHOULDER, JointName.RIGHT_ELBOW),
    (JointName.RIGHT_ELBOW, JointName.RIGHT_WRIST),
    # Torso
    (JointName.LEFT_SHOULDER, JointName.LEFT_HIP),
    (JointName.RIGHT_SHOULDER, JointName.RIGHT_HIP),
    (JointName.LEFT_HIP, JointName.RIGHT_HIP),
    # Lower body
    (JointName.LEFT_HIP, JointName.LEFT_KNEE),
    (JointName.LEFT_KNEE, JointName.LEFT_ANKLE),
    (JointName.RIGHT_HIP, JointName.RIGHT_KNEE),
    (JointName.RIGHT_KNEE, JointName.RIGHT_ANKLE),
]
