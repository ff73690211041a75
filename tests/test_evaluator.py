from datetime import datetime, timedelta, timezone

import pytest

from models.exercise import CharacterExercise, Lesson, SentenceExercise
from models.progress import AttemptRecord
from utils.evaluator import (
    CORRECT,
    FINISHED,
    IGNORED,
    INCORRECT,
    LESSON_COMPLETED,
    SubmissionEvaluator,
)
from utils.progress import ProgressStore

T = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


def _char(glyph: str, code: str) -> CharacterExercise:
    return CharacterExercise(glyph=glyph, meaning="", code=code)


@pytest.fixture
def store(tutor_home):
    store = ProgressStore()
    store.load()
    return store


def _single_lesson():
    return [Lesson(id="phrase", title="Phrase", exercises=[_char("好", "VND"), _char("學", "HBND")])]


def _two_lessons():
    return [
        Lesson(id="first", title="First", exercises=[_char("日", "A")]),
        Lesson(id="second", title="Second", exercises=[_char("月", "B"), SentenceExercise(text="日 月", meaning="sun moon")]),
    ]


def test_two_correct_answers_complete_the_lesson(store):
    evaluator = SubmissionEvaluator(_single_lesson(), store)
    assert evaluator.cursor == 0

    first = evaluator.submit("好", T)
    assert first.status == CORRECT
    assert not first.lesson_completed
    assert evaluator.cursor == 1

    second = evaluator.submit(" 學 ", T + timedelta(seconds=20))
    assert second.status == LESSON_COMPLETED
    assert second.lesson_completed
    assert second.message != first.message
    assert evaluator.cursor == 2
    assert evaluator.is_finished()

    progress = store.active.progress
    assert set(progress.known_units) == {"好", "學"}
    assert isinstance(second.attempt, AttemptRecord)
    assert second.attempt.lesson_id == "phrase"
    assert second.attempt.accuracy == 1.0
    assert second.attempt.attempt_count == 2
    assert progress.summary.total_sessions == 1
    assert progress.attempts[0].to_wire() == second.attempt.to_wire()
    assert progress.summary.lesson_completions["phrase"].count == 1


def test_padded_sentence_in_catalog_accepts_trimmed_answer(store):
    lessons = [Lesson(id="typing", title="Typing", exercises=[SentenceExercise(text=" 打字 ", meaning="to type")])]
    evaluator = SubmissionEvaluator(lessons, store)

    wrong = evaluator.submit("打", T)
    assert wrong.expected == "打字"

    result = evaluator.submit("打字", T)
    assert result.status == LESSON_COMPLETED
    assert set(store.active.progress.known_units) == {"打", "字"}


def test_wrong_answer_resets_streak_only(store):
    pid = store.active.id
    store.record_attempt(pid, AttemptRecord(lesson_id="phrase", accuracy=0.95, speed=10))
    evaluator = SubmissionEvaluator(_single_lesson(), store)
    assert store.active.progress.summary.streak == 1

    result = evaluator.submit("VND", T)
    assert result.status == INCORRECT
    assert result.expected == "好"
    assert "好" in result.message
    assert result.clear_input
    assert evaluator.cursor == 0
    progress = store.active.progress
    assert progress.summary.streak == 0
    assert progress.summary.longest_streak == 1
    assert progress.mastery == {}
    assert evaluator.session.stats.incorrect == 1


def test_blank_input_is_ignored(store):
    evaluator = SubmissionEvaluator(_single_lesson(), store)
    before = store.collection
    result = evaluator.submit("   ", T)
    assert result.status == IGNORED
    assert store.collection is before
    assert evaluator.session.stats.attempts == 0


def test_crossing_into_next_lesson_signals_completion(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.submit("X", T)
    result = evaluator.submit("日", T + timedelta(seconds=10))
    assert result.status == LESSON_COMPLETED
    assert result.lesson_id == "first"
    assert result.attempt.accuracy == 0.5
    assert evaluator.current().lesson_id == "second"


def test_sentence_success_learns_each_character(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.jump_to_lesson("second")
    evaluator.submit("月", T)
    result = evaluator.submit("日 月", T)
    assert result.status == LESSON_COMPLETED
    assert result.units == ["日", "月"]
    assert store.active.progress.mastery["月"].level == 2
    assert store.active.progress.mastery["日"].level == 1
    assert evaluator.submit("anything", T).status == FINISHED


def test_auto_resume_on_profile_activation(store):
    evaluator = SubmissionEvaluator(_single_lesson(), store)
    evaluator.submit("好", T)
    evaluator.submit("學", T)
    finished_id = store.active.id
    assert evaluator.cursor == 2

    fresh = store.create_profile("Fresh")
    assert evaluator.activate_profile(fresh.id) == 0
    assert evaluator.cursor == 0

    assert evaluator.activate_profile(finished_id) == len(evaluator.index)


def test_manual_jump_is_not_overridden(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.submit("日", T)
    assert evaluator.jump_to_lesson("first") == 0
    assert evaluator.cursor == 0
    assert evaluator.jump_to_lesson("missing") is None


def test_reveal_drops_character_back_to_level_zero(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.submit("日", T)
    evaluator.jump_to_lesson("first")
    evaluator.session.record_attempt(False, T)

    shown = evaluator.reveal(T + timedelta(minutes=5))
    assert shown.glyph == "日"
    record = store.active.progress.mastery["日"]
    assert record.level == 0
    assert record.next_review_at == T + timedelta(minutes=5)
    assert "日" in store.active.progress.known_units
    assert evaluator.cursor == 0
    assert evaluator.session.stats.incorrect == 1


def test_reveal_ignores_sentences(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.submit("日", T)
    evaluator.submit("月", T)
    before = store.collection
    evaluator.reveal(T)
    assert store.collection is before


def test_review_summary(store):
    evaluator = SubmissionEvaluator(_two_lessons(), store)
    evaluator.submit("日", T)
    assert evaluator.review_summary(T) == {"due": 0, "learnedToday": 1, "known": 1}
    assert evaluator.review_summary(T + timedelta(hours=4))["due"] == 1
