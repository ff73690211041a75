from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from models.progress import MAX_LEVEL as MODEL_MAX_LEVEL, MasteryRecord, ProfileProgress
from utils.scheduler import (
    MAX_LEVEL,
    due_count,
    interval_for_level,
    learned_today_count,
    record_success,
    reveal,
)

T = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_first_and_second_success_follow_the_ladder():
    progress, record = record_success(ProfileProgress(), "學", T)
    assert record.level == 1
    assert record.next_review_at == T + timedelta(hours=4)
    assert record.first_learned_at == T
    assert progress.known_units == ["學"]

    later = T + timedelta(hours=5)
    progress, record = record_success(progress, "學", later)
    assert record.level == 2
    assert record.next_review_at == later + timedelta(hours=24)
    assert record.first_learned_at == T
    assert progress.known_units == ["學"]


def test_level_never_exceeds_max():
    progress = ProfileProgress()
    levels = []
    for step in range(10):
        progress, record = record_success(progress, "日", T + timedelta(days=step))
        levels.append(record.level)
    assert levels == sorted(levels)
    assert max(levels) == MAX_LEVEL
    assert record.next_review_at == T + timedelta(days=9) + timedelta(days=30)


def test_stored_records_accept_every_level_the_ladder_reaches():
    assert MAX_LEVEL == MODEL_MAX_LEVEL
    progress = ProfileProgress()
    for step in range(MAX_LEVEL + 2):
        progress, _ = record_success(progress, "日", T + timedelta(days=step))
    restored = ProfileProgress.model_validate(progress.to_wire())
    assert restored.mastery["日"].level == MAX_LEVEL

    with pytest.raises(ValidationError):
        MasteryRecord(level=MAX_LEVEL + 1, first_learned_at=T, last_practiced_at=T, next_review_at=T)


def test_interval_lookup_clamps():
    assert interval_for_level(0) == timedelta(0)
    assert interval_for_level(3) == timedelta(days=3)
    assert interval_for_level(12) == timedelta(days=30)


def test_record_success_does_not_mutate_input():
    original = ProfileProgress()
    record_success(original, "月", T)
    assert original.mastery == {}
    assert original.known_units == []


def test_reveal_resets_level_and_keeps_unit_known():
    progress, _ = record_success(ProfileProgress(), "木", T)
    progress, _ = record_success(progress, "木", T + timedelta(hours=5))
    shown_at = T + timedelta(hours=6)
    progress = reveal(progress, "木", shown_at)
    assert progress.mastery["木"].level == 0
    assert progress.mastery["木"].next_review_at == shown_at
    assert "木" in progress.known_units

    again = reveal(progress, "木", shown_at + timedelta(minutes=1))
    assert again is progress


def test_reveal_of_unknown_unit_is_noop():
    progress = ProfileProgress()
    assert reveal(progress, "水", T) is progress


def test_due_count_and_learned_today():
    progress, _ = record_success(ProfileProgress(), "日", T)
    progress, _ = record_success(progress, "月", T - timedelta(days=3))
    progress = reveal(progress, "月", T - timedelta(hours=1))
    assert due_count(progress, T) == 1
    assert due_count(progress, T + timedelta(hours=4)) == 2
    assert learned_today_count(progress, T) == 1
