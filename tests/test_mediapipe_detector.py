from types import SimpleNamespace

import pytest

pytest.importorskip("cv2")

from rep_engine.pose_detection.mediapipe_detector import MEDIAPIPE_LANDMARK_INDEX, snapshot_from_mediapipe  # noqa: E402
from rep_engine.pose_detection.pose import JointName  # noqa: E402


def _landmarks(visibility=0.9):
    return [SimpleNamespace(x=i / 100.0, y=i / 50.0, z=0.0, visibility=visibility) for i in range(33)]


def test_maps_tracked_landmarks():
    pose = snapshot_from_mediapipe(_landmarks())
    assert len(pose) == 17
    elbow = pose.joint(JointName.LEFT_ELBOW)
    assert elbow.x == pytest.approx(0.13)
    assert elbow.y == pytest.approx(0.26)
    assert set(MEDIAPIPE_LANDMARK_INDEX) == set(JointName)


def test_low_visibility_is_no_pose():
    assert snapshot_from_mediapipe(_landmarks(visibility=0.1)) is None


def test_partial_visibility():
    landmarks = _landmarks()
    landmarks[0].visibility = 0.05
    pose = snapshot_from_mediapipe(landmarks)
    assert JointName.NOSE not in pose
    assert JointName.RIGHT_ANKLE in pose
