import pytest

from rep_engine.exercise_analysis import SquatAnalyzer, SquatState


@pytest.fixture
def analyzer():
    return SquatAnalyzer()


def _calibrate(analyzer, leg_pose, run_frames):
    _, frame = run_frames(analyzer, [leg_pose(170.0)] * 31)
    assert analyzer.is_ready
    return frame


def test_one_squat(analyzer, leg_pose, run_frames):
    frame = _calibrate(analyzer, leg_pose, run_frames)
    _, frame = run_frames(analyzer, [leg_pose(100.0)] * 15, frame)
    assert analyzer.current_state is SquatState.SQUATTING
    states, _ = run_frames(analyzer, [leg_pose(165.0)] * 15, frame)
    assert analyzer.rep_count == 1
    assert analyzer.current_state is SquatState.STANDING
    assert states[-1].angles["hip_angle"] == pytest.approx(180.0)


def test_hovering_near_top_never_counts(analyzer, leg_pose, run_frames):
    frame = _calibrate(analyzer, leg_pose, run_frames)
    poses = [leg_pose(155.0 if k % 2 == 0 else 145.0) for k in range(50)]
    states, _ = run_frames(analyzer, poses, frame)
    assert analyzer.rep_count == 0
    assert analyzer.current_state is SquatState.TRANSITIONING
    assert states[-1].phase == "transitioning"


def test_debounce_is_longer_than_push_ups(analyzer, leg_pose):
    analyzer.analyze(leg_pose(170.0), 0.0)
    analyzer.analyze(leg_pose(170.0), 1.0)
    assert analyzer.analyze(leg_pose(100.0), 1.25).phase == "standing"
    assert analyzer.analyze(leg_pose(100.0), 1.35).phase == "squatting"


def test_calibration_feedback(analyzer, leg_pose):
    analyzer.analyze(leg_pose(100.0), 0.0)
    assert analyzer.feedback == "Stand up straight first"
    analyzer.analyze(leg_pose(135.0), 0.1)
    assert analyzer.feedback == "Stand up straight"


def test_missing_legs_restarts_calibration(analyzer, leg_pose, arm_pose, run_frames):
    _, frame = run_frames(analyzer, [leg_pose(170.0)] * 21)
    state = analyzer.analyze(arm_pose(170.0), frame / 30.0)
    assert state.feedback == "Show your full body"
    assert not state.analysis_reliable
    frame += 1
    _, frame = run_frames(analyzer, [leg_pose(170.0)] * 30, frame)
    assert not analyzer.is_ready
    run_frames(analyzer, [leg_pose(170.0)] * 2, frame)
    assert analyzer.is_ready


def test_hip_angle_does_not_gate(analyzer, leg_pose, run_frames):
    frame = _calibrate(analyzer, leg_pose, run_frames)
    _, frame = run_frames(analyzer, [leg_pose(100.0, with_shoulders=False)] * 15, frame)
    run_frames(analyzer, [leg_pose(165.0, with_shoulders=False)] * 15, frame)
    assert analyzer.rep_count == 1


def test_reset(analyzer, leg_pose, run_frames):
    initial = analyzer.state
    _calibrate(analyzer, leg_pose, run_frames)
    analyzer.reset()
    analyzer.reset()
    assert analyzer.state == initial
    assert analyzer.current_state is SquatState.UNKNOWN
