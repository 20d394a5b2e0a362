import pytest

from rep_engine.exercise_analysis import PlankAnalyzer, PlankState


@pytest.fixture
def analyzer():
    return PlankAnalyzer()


def test_initial_state(analyzer):
    assert analyzer.current_state is PlankState.UNKNOWN
    assert analyzer.seconds_held == 0
    assert analyzer.feedback == "Get into plank position"
    assert analyzer.state.seconds_held == 0


def test_forty_one_seconds_is_two_reps(analyzer, plank_pose, run_frames):
    states, _ = run_frames(analyzer, [plank_pose()] * 1261)
    assert analyzer.seconds_held == 41
    assert analyzer.rep_count == 2
    assert analyzer.current_state is PlankState.HOLDING
    assert states[-1].seconds_held == 41
    assert sum("rep_completed" in s.events for s in states) == 2


def test_calibration(analyzer, plank_pose):
    analyzer.analyze(plank_pose(valid=False), 0.0)
    assert analyzer.current_state is PlankState.NOT_IN_POSITION
    analyzer.analyze(plank_pose(), 0.1)
    assert analyzer.current_state is PlankState.GETTING_IN_POSITION
    assert analyzer.feedback == "Hold position..."
    state = analyzer.analyze(plank_pose(), 1.2)
    assert state.is_ready
    assert state.phase == "holding"
    assert "ready" in state.events


def test_no_pose_feedback(analyzer):
    state = analyzer.analyze(None, 0.0)
    assert state.feedback == "Get into plank position"
    assert state.phase == "not_in_position"
    assert not state.analysis_reliable


def test_short_gap_keeps_accumulating(analyzer, plank_pose, run_frames):
    states, frame = run_frames(analyzer, [plank_pose()] * 91)
    assert analyzer.seconds_held == 2
    states, frame = run_frames(analyzer, [None] * 9, frame)
    assert all(s.phase == "holding" for s in states)
    run_frames(analyzer, [plank_pose()] * 51, frame)
    assert analyzer.seconds_held == 4


def test_long_gap_breaks_and_pauses(analyzer, plank_pose, run_frames):
    _, frame = run_frames(analyzer, [plank_pose()] * 91)
    assert analyzer.seconds_held == 2
    states, frame = run_frames(analyzer, [plank_pose(valid=False)] * 24, frame)
    assert analyzer.current_state is PlankState.BROKEN
    assert analyzer.feedback == "Get back into position!"
    assert analyzer.show_positioning_feedback
    assert sum("broken" in s.events for s in states) == 1
    assert analyzer.seconds_held == 2

    states, _ = run_frames(analyzer, [plank_pose()] * 31, frame)
    assert "resumed" in states[0].events
    assert analyzer.current_state is PlankState.HOLDING
    assert analyzer.feedback == ""
    assert analyzer.seconds_held == 3


def test_reset(analyzer, plank_pose, run_frames):
    initial = analyzer.state
    run_frames(analyzer, [plank_pose()] * 120)
    analyzer.reset()
    analyzer.reset()
    assert analyzer.state == initial
    assert analyzer.seconds_held == 0
    assert analyzer.rep_count == 0
