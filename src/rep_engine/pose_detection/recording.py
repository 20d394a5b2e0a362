"""
recording.py - Recorded keypoint sessions for replaying through an analyzer.

A recording is a JSON list of frames::

    [{"t": 0.0, "joints": {"left_elbow": [0.41, 0.52, 0.97], ...}},
     {"t": 0.033, "joints": null}]

``t`` is the frame time in seconds. ``joints`` is null for frames where no
body was detected.
"""
import json
from typing import Iterable, List, Optional, Tuple

from .pose import MIN_JOINT_CONFIDENCE, PoseSnapshot

RecordedFrame = Tuple[float, Optional[PoseSnapshot]]


def parse_pose_recording(data, min_confidence: float = MIN_JOINT_CONFIDENCE) -> List[RecordedFrame]:
    """
    Validate decoded recording data and convert it to (time, snapshot) pairs.

    Raises:
        ValueError: If the data is not a list of frames, a frame lacks a numeric
            time, times go backwards, or a joint entry is malformed
    """
    if not isinstance(data, list):
        raise ValueError("Recording must be a JSON list of frames")

    frames: List[RecordedFrame] = []
    last_t = None
    for i, frame in enumerate(data):
        if not isinstance(frame, dict) or "t" not in frame:
            raise ValueError(f"Frame {i} must be an object with a 't' field")
        t = frame["t"]
        if isinstance(t, bool) or not isinstance(t, (int, float)):
            raise ValueError(f"Frame {i} has a non-numeric time: {t!r}")
        if last_t is not None and t < last_t:
            raise ValueError(f"Frame {i} goes back in time ({t} < {last_t})")
        last_t = t

        joints = frame.get("joints")
        if joints is not None:
            if not isinstance(joints, dict):
                raise ValueError(f"Frame {i} joints must be an object or null")
            for name, values in joints.items():
                if not isinstance(values, list) or len(values) < 3 or \
                        not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
                    raise ValueError(f"Frame {i} joint '{name}' must be [x, y, confidence]")
        frames.append((float(t), PoseSnapshot.from_landmarks(joints, min_confidence)))
    return frames


def load_pose_recording(path: str, min_confidence: float = MIN_JOINT_CONFIDENCE) -> List[RecordedFrame]:
    """Load a recording file. See ``parse_pose_recording`` for the checks applied."""
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Recording {path} is not valid JSON: {e}") from e
    return parse_pose_recording(data, min_confidence)


def save_pose_recording(path: str, frames: Iterable[RecordedFrame]) -> None:
    data = [
        {"t": t, "joints": pose.to_landmarks() if pose is not None else None}
        for t, pose in frames
    ]
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
