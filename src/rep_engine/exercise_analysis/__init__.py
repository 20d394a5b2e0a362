"""
Exercise analysis package: repetition counting and hold timing from pose snapshots.
"""

from .base_analyzer import (
    ANALYZER_REGISTRY,
    BaseExerciseAnalyzer,
    ExerciseState,
    ExerciseType,
    RepetitionAnalyzer,
    create_analyzer,
    register_analyzer,
)
from .pushup_analyzer import PushupAnalyzer, PushupState
from .squat_analyzer import SquatAnalyzer, SquatState
from .plank_analyzer import PlankAnalyzer, PlankState

__all__ = [
    'ANALYZER_REGISTRY',
    'BaseExerciseAnalyzer',
    'ExerciseState',
    'ExerciseType',
    'RepetitionAnalyzer',
    'create_analyzer',
    'register_analyzer',
    'PushupAnalyzer',
    'PushupState',
    'SquatAnalyzer',
    'SquatState',
    'PlankAnalyzer',
    'PlankState',
]
