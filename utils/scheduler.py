from datetime import datetime, timedelta
from typing import List, Tuple

from models.progress import MAX_LEVEL, MasteryRecord, ProfileProgress

INTERVAL_STEPS: List[timedelta] = [
    timedelta(0),
    timedelta(hours=4),
    timedelta(hours=24),
    timedelta(days=3),
    timedelta(days=7),
    timedelta(days=30),
]


def interval_for_level(level: int) -> timedelta:
    """Review interval for a mastery level; levels past the table use the last step."""
    if level <= 0:
        return INTERVAL_STEPS[0]
    return INTERVAL_STEPS[min(level, len(INTERVAL_STEPS) - 1)]


def record_success(
    progress: ProfileProgress, unit: str, now: datetime
) -> Tuple[ProfileProgress, MasteryRecord]:
    """Promote a unit one level, reschedule it and add it to the known set."""
    existing = progress.mastery.get(unit)
    current_level = existing.level if existing else 0
    first_learned_at = existing.first_learned_at if existing else now
    new_level = min(current_level + 1, MAX_LEVEL)
    record = MasteryRecord(
        level=new_level,
        first_learned_at=first_learned_at,
        last_practiced_at=now,
        next_review_at=now + interval_for_level(new_level),
    )
    known_units = progress.known_units
    if unit not in known_units:
        known_units = [*known_units, unit]
    updated = progress.model_copy(update={
        "mastery": {**progress.mastery, unit: record},
        "known_units": known_units,
    })
    return updated, record


def reveal(progress: ProfileProgress, unit: str, now: datetime) -> ProfileProgress:
    """Send a unit back to level 0 for immediate review. The known set is left alone."""
    existing = progress.mastery.get(unit)
    if existing is None or existing.level == 0:
        return progress
    record = existing.model_copy(update={"level": 0, "next_review_at": now})
    return progress.model_copy(update={"mastery": {**progress.mastery, unit: record}})


def due_units(progress: ProfileProgress, now: datetime) -> List[str]:
    return [unit for unit, record in progress.mastery.items() if record.next_review_at <= now]


def due_count(progress: ProfileProgress, now: datetime) -> int:
    return len(due_units(progress, now))


def learned_today_count(progress: ProfileProgress, now: datetime) -> int:
    """Units first learned on the same local calendar day as now."""
    today = now.astimezone().date()
    return sum(
        1 for record in progress.mastery.values()
        if record.first_learned_at.astimezone().date() == today
    )
