from .exercise import CharacterExercise, SentenceExercise, Exercise, Lesson
from .progress import (
    AttemptRecord,
    LessonCompletionSummary,
    MasteryRecord,
    Profile,
    ProfileCollection,
    ProfileProgress,
    ProgressSummary,
)

__all__ = [
    'CharacterExercise', 'SentenceExercise', 'Exercise', 'Lesson',
    'AttemptRecord', 'LessonCompletionSummary', 'MasteryRecord', 'Profile',
    'ProfileCollection', 'ProfileProgress', 'ProgressSummary',
]
