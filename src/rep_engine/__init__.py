"""
Repetition detection engine: turns a stream of body pose snapshots into
exercise repetition counts and plank hold time.
"""

from .exercise_analysis import (
    ExerciseState,
    ExerciseType,
    PlankAnalyzer,
    PushupAnalyzer,
    SquatAnalyzer,
    create_analyzer,
)
from .pose_detection import Joint, JointName, PoseSnapshot

__version__ = "0.1.0"

__all__ = [
    'ExerciseState',
    'ExerciseType',
    'PlankAnalyzer',
    'PushupAnalyzer',
    'SquatAnalyzer',
    'create_analyzer',
    'Joint',
    'JointName',
    'PoseSnapshot',
]
