import pytest

pytest.importorskip("pyttsx3")

from rep_engine.exercise_analysis.base_analyzer import ExerciseState  # noqa: E402
from rep_engine.feedback.voice_feedback import VoiceFeedback  # noqa: E402


def _state(feedback="", show=False, rep_count=0, events=None, seconds_held=None):
    return ExerciseState(
        name="Push-ups",
        phase="up",
        rep_count=rep_count,
        feedback=feedback,
        show_positioning_feedback=show,
        seconds_held=seconds_held,
        events=events or [],
    )


@pytest.fixture
def voice():
    return VoiceFeedback(cooldown=4.0)


def test_counts_reps(voice):
    assert voice.generate_feedback(_state(rep_count=3, events=["rep_completed"]), now=0.0) == "3"


def test_plank_rep_announces_seconds(voice):
    state = _state(rep_count=1, events=["second_elapsed", "rep_completed"], seconds_held=20)
    assert voice.generate_feedback(state, now=0.0) == "20 seconds"


def test_ready(voice):
    assert voice.generate_feedback(_state(events=["ready"]), now=0.0) == "Go!"
    assert voice.generate_feedback(_state(events=["ready"], seconds_held=0), now=0.0) == "Timer started"


def test_hints_change_and_cool_down(voice):
    hint = _state("Get into position", show=True)
    assert voice.generate_feedback(hint, now=0.0) == "Get into position"
    assert voice.generate_feedback(hint, now=10.0) is None

    other = _state("Hold position...", show=True)
    assert voice.generate_feedback(other, now=1.0) is None
    assert voice.generate_feedback(other, now=5.0) == "Hold position..."


def test_quiet_while_counting(voice):
    assert voice.generate_feedback(_state(), now=0.0) is None


def test_broken_plank_is_spoken_immediately(voice):
    voice.generate_feedback(_state("Get into plank position", show=True), now=0.0)
    state = _state("Get back into position!", show=True, events=["broken"], seconds_held=12)
    assert voice.generate_feedback(state, now=0.5) == "Get back into position!"
