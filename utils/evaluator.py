from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from loguru import logger

from models.exercise import CharacterExercise, Exercise, Lesson
from models.progress import AttemptRecord, ProfileCollection, ProfileProgress, utcnow
from utils import scheduler
from utils.catalog import FlatEntry, FlatIndex, first_unknown_index, flatten, lesson_start_index
from utils.progress import ProgressStore, advance_cursor, record_attempt, update_progress
from utils.session import SessionTracker

IGNORED = "ignored"
CORRECT = "correct"
INCORRECT = "incorrect"
LESSON_COMPLETED = "lesson_completed"
FINISHED = "finished"

MESSAGES = {
    CORRECT: "Correct! Keep going.",
    LESSON_COMPLETED: "Great job! Lesson complete.",
}


@dataclass(frozen=True)
class SubmissionResult:
    status: str
    cursor: int
    message: Optional[str] = None
    expected: Optional[str] = None
    lesson_id: Optional[str] = None
    lesson_completed: bool = False
    clear_input: bool = False
    attempt: Optional[AttemptRecord] = None
    units: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "cursor": self.cursor,
            "message": self.message,
            "expected": self.expected,
            "lessonId": self.lesson_id,
            "lessonCompleted": self.lesson_completed,
            "clearInput": self.clear_input,
            "attempt": self.attempt.to_wire() if self.attempt else None,
            "units": self.units,
        }


class SubmissionEvaluator:
    """Drives one learner through the flattened exercise sequence.

    Holds the catalog, the progress store and two session trackers: one for
    the exercise at the cursor (reset whenever the cursor or profile changes)
    and one for the current lesson run, which feeds the attempt emitted when a
    lesson is completed.
    """

    def __init__(self, lessons: Iterable[Lesson], store: ProgressStore):
        self.lessons: List[Lesson] = list(lessons)
        self.index: FlatIndex = flatten(self.lessons)
        self.store = store
        self.session = SessionTracker()
        self.lesson_run = SessionTracker()
        self.activate_profile(self.store.active.id)

    @property
    def profile_id(self) -> str:
        return self.store.active.id

    @property
    def progress(self) -> ProfileProgress:
        return self.store.active.progress

    @property
    def cursor(self) -> int:
        return self.progress.cursor

    def current(self) -> Optional[FlatEntry]:
        return self.index.entry_at(self.cursor)

    def is_finished(self) -> bool:
        return self.cursor >= len(self.index)

    def set_lessons(self, lessons: Iterable[Lesson]) -> None:
        self.lessons = list(lessons)
        self.index = flatten(self.lessons)
        self._resume()

    def _reset_runs(self) -> None:
        self.session.reset()
        self.lesson_run.reset()

    def _resume(self) -> int:
        position = first_unknown_index(self.index, self.progress.known_units)
        if position != self.cursor:
            self.store.set_cursor(self.profile_id, position)
        self._reset_runs()
        return position

    def activate_profile(self, profile_id: str) -> int:
        """Switch profile and move the cursor to the first exercise with unknown units."""
        self.store.set_active(profile_id)
        position = self._resume()
        logger.info(f"Profile {self.profile_id} resumed at {position}/{len(self.index)}")
        return position

    def jump_to_lesson(self, lesson_id: str) -> Optional[int]:
        position = lesson_start_index(self.index, lesson_id)
        if position is None:
            return None
        self.store.set_cursor(self.profile_id, position)
        self._reset_runs()
        return position

    def reset_session(self) -> None:
        self.session.reset()

    def _build_attempt(self, lesson_id: str, now: datetime) -> Optional[AttemptRecord]:
        stats = self.lesson_run.stats
        if not stats.attempts:
            return None
        return AttemptRecord(
            lesson_id=lesson_id,
            accuracy=self.lesson_run.accuracy(),
            speed=self.lesson_run.speed(now),
            attempt_count=stats.attempts,
            completed_at=now,
        )

    def submit(self, text: str, now: Optional[datetime] = None) -> SubmissionResult:
        now = now or utcnow()
        entry = self.current()
        answer = (text or "").strip()
        if entry is None:
            return SubmissionResult(status=FINISHED if self.index else IGNORED, cursor=self.cursor)
        if not answer:
            return SubmissionResult(status=IGNORED, cursor=self.cursor, lesson_id=entry.lesson_id)

        expected = entry.exercise.answer.strip()
        if answer != expected:
            self.session.record_attempt(False, now)
            self.lesson_run.record_attempt(False, now)
            self.store.reset_streak(self.profile_id)
            return SubmissionResult(
                status=INCORRECT,
                cursor=self.cursor,
                message=f"Expected {expected}",
                expected=expected,
                lesson_id=entry.lesson_id,
                clear_input=True,
            )

        self.lesson_run.record_attempt(True, now)
        profile_id = self.profile_id
        units = list(entry.exercise.units)
        following = self.index.entry_at(entry.position + 1)
        completes_lesson = following is None or following.lesson_id != entry.lesson_id
        attempt = self._build_attempt(entry.lesson_id, now) if completes_lesson else None

        def apply(collection: ProfileCollection) -> ProfileCollection:
            def learn(progress: ProfileProgress) -> ProfileProgress:
                for unit in units:
                    progress, _ = scheduler.record_success(progress, unit, now)
                return progress

            updated = advance_cursor(update_progress(collection, profile_id, learn), profile_id)
            if attempt is not None:
                updated = record_attempt(
                    updated, profile_id, attempt, self.store.passing_accuracy, self.store.history_limit
                )
            return updated

        # mastery, cursor and lesson history land in a single save
        self.store.mutate(apply)
        self.session.reset()

        if not completes_lesson:
            return SubmissionResult(
                status=CORRECT,
                cursor=self.cursor,
                message=MESSAGES[CORRECT],
                lesson_id=entry.lesson_id,
                clear_input=True,
                units=units,
            )

        self.lesson_run.reset()
        logger.info(f"Lesson {entry.lesson_id} completed by profile {profile_id}")
        return SubmissionResult(
            status=LESSON_COMPLETED,
            cursor=self.cursor,
            message=MESSAGES[LESSON_COMPLETED],
            lesson_id=entry.lesson_id,
            lesson_completed=True,
            clear_input=True,
            attempt=attempt,
            units=units,
        )

    def reveal(self, now: Optional[datetime] = None) -> Optional[Exercise]:
        """Open the detail view for the current exercise; characters drop back to level 0."""
        now = now or utcnow()
        entry = self.current()
        if entry is None:
            return None
        exercise = entry.exercise
        if isinstance(exercise, CharacterExercise):
            self.store.mutate(
                lambda c: update_progress(
                    c, self.profile_id, lambda p: scheduler.reveal(p, exercise.glyph, now)
                )
            )
        return exercise

    def review_summary(self, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        progress = self.progress
        return {
            "due": scheduler.due_count(progress, now),
            "learnedToday": scheduler.learned_today_count(progress, now),
            "known": len(progress.known_units),
        }
