import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")
pytest.importorskip("pyttsx3")

from rep_engine import trainer as trainer_module  # noqa: E402
from rep_engine.pose_detection.base_detector import BasePoseDetector  # noqa: E402
from rep_engine.pose_detection.pose import JointName  # noqa: E402
from rep_engine.pose_detection.recording import save_pose_recording  # noqa: E402
from rep_engine.trainer import WorkoutSummary, WorkoutTrainer  # noqa: E402


class FixedPoseDetector(BasePoseDetector):
    """Returns the same pose for every frame."""

    def __init__(self, pose):
        super().__init__(max_frame_rate=30)
        self.pose = pose
        self.calls = 0
        self.closed = 0

    def detect(self, frame):
        self.calls += 1
        return self.pose

    def close(self):
        self.closed += 1


class UpperBodyDetector(FixedPoseDetector):
    """Tracks nothing below the waist."""

    def get_joint_names(self):
        lower = ("hip", "knee", "ankle")
        return [name for name in super().get_joint_names() if not name.value.endswith(lower)]


def _trainer(exercise, **kwargs):
    return WorkoutTrainer(exercise, enable_voice=False, show_window=False, **kwargs)


def test_replay_push_up_recording(tmp_path, arm_pose):
    poses = [arm_pose(170.0)] * 35 + [arm_pose(110.0)] * 5 + [arm_pose(170.0)] * 5
    path = str(tmp_path / "push_ups.json")
    save_pose_recording(path, [(i / 30.0, pose) for i, pose in enumerate(poses)])

    summary = _trainer("push_ups").replay(path)
    assert isinstance(summary, WorkoutSummary)
    assert summary.exercise == "push_ups"
    assert summary.units == 1
    assert summary.unit_label == "rep"
    assert summary.seconds_held is None
    assert summary.duration == pytest.approx(44 / 30.0)


def test_replay_plank_frames(plank_pose):
    frames = [(i / 30.0, plank_pose()) for i in range(1261)]
    summary = _trainer("plank").replay(frames)
    assert summary.units == 2
    assert summary.seconds_held == 41
    assert summary.unit_label == "sec"
    assert summary.duration == pytest.approx(42.0)


def test_process_frame_is_rate_limited(arm_pose):
    detector = FixedPoseDetector(arm_pose(170.0))
    trainer = _trainer("push_ups", pose_detector=detector)
    frame = np.zeros((48, 64, 3), dtype=np.uint8)

    assert trainer.process_frame(frame, now=0.0) is not None
    assert trainer.process_frame(frame, now=0.01) is None
    assert trainer.process_frame(frame, now=0.04) is not None
    assert detector.calls == 2


def test_no_pose_frames():
    trainer = _trainer("squats", pose_detector=FixedPoseDetector(None))
    state = trainer.process_frame(np.zeros((48, 64, 3), dtype=np.uint8), now=0.0)
    assert state.feedback == "Position yourself in frame"


def test_display_draws_on_frame(arm_pose, monkeypatch):
    trainer = _trainer("push_ups", pose_detector=FixedPoseDetector(arm_pose(170.0)))
    frame = np.zeros((240, 320, 3), dtype=np.uint8)
    state = trainer.process_frame(frame, now=0.0)
    shown = []
    monkeypatch.setattr(cv2, "imshow", lambda name, image: shown.append(name))
    trainer._display_results(frame, state)
    assert shown == ["Rep Engine"]
    assert frame.any()


def test_reset_clears_session(plank_pose):
    trainer = _trainer("plank")
    trainer.replay([(i / 30.0, plank_pose()) for i in range(90)])
    trainer.reset()
    assert trainer.summary().duration == 0.0
    assert trainer.summary().seconds_held == 0


def test_unknown_exercise():
    with pytest.raises(ValueError):
        _trainer("burpees")


def test_missing_video_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        _trainer("squats").run_video(str(tmp_path / "missing.mp4"))


def test_stop_closes_created_detector(arm_pose, monkeypatch):
    created = []

    def make_detector(**kwargs):
        detector = FixedPoseDetector(arm_pose(170.0))
        created.append(detector)
        return detector

    monkeypatch.setattr(trainer_module, "MediaPipePoseDetector", make_detector)
    trainer = _trainer("push_ups")
    trainer.process_frame(np.zeros((48, 64, 3), dtype=np.uint8), now=0.0)
    trainer.stop()
    trainer.stop()

    assert len(created) == 1
    assert created[0].closed == 1
    assert trainer.pose_detector is None


def test_stop_leaves_given_detector_open(arm_pose):
    detector = FixedPoseDetector(arm_pose(170.0))
    trainer = _trainer("push_ups", pose_detector=detector)
    trainer.process_frame(np.zeros((48, 64, 3), dtype=np.uint8), now=0.0)
    trainer.stop()
    assert detector.closed == 0
    assert trainer.pose_detector is detector


def test_detector_missing_required_joints():
    squats = _trainer("squats", pose_detector=UpperBodyDetector(None))
    missing = squats._check_detector_joints(squats.pose_detector)
    assert JointName.LEFT_KNEE in missing
    assert JointName.RIGHT_ANKLE in missing

    push_ups = _trainer("push_ups", pose_detector=UpperBodyDetector(None))
    assert push_ups._check_detector_joints(push_ups.pose_detector) == []


def test_required_joints_per_exercise():
    assert JointName.LEFT_ELBOW in _trainer("push_ups").exercise_analyzer.get_required_joints()
    assert JointName.RIGHT_KNEE in _trainer("squats").exercise_analyzer.get_required_joints()
    assert JointName.LEFT_HIP in _trainer("plank").exercise_analyzer.get_required_joints()
