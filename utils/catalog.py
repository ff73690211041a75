from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger
from pydantic import ValidationError

from models.exercise import CharacterExercise, Exercise, Lesson, SentenceExercise

_CATALOG_CACHE: Dict[str, List[Lesson]] = {}
_DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "lessons.json"


@dataclass(frozen=True)
class FlatEntry:
    position: int
    exercise: Exercise
    lesson_id: str


class FlatIndex(Sequence[FlatEntry]):
    """Read-only, globally indexed view over every exercise in catalog order."""

    def __init__(self, entries: Iterable[FlatEntry]):
        self._entries: Tuple[FlatEntry, ...] = tuple(entries)

    def __getitem__(self, position):
        return self._entries[position]

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlatIndex):
            return NotImplemented
        return self._entries == other._entries

    def __iter__(self) -> Iterator[FlatEntry]:
        return iter(self._entries)

    def entry_at(self, position: int) -> Optional[FlatEntry]:
        if 0 <= position < len(self._entries):
            return self._entries[position]
        return None

    def lesson_ids(self) -> List[str]:
        return list(dict.fromkeys(entry.lesson_id for entry in self._entries))


def flatten(lessons: Iterable[Lesson]) -> FlatIndex:
    """Lay out every lesson's exercises end to end, preserving order."""
    entries: List[FlatEntry] = []
    for lesson in lessons:
        for exercise in lesson.exercises or []:
            entries.append(FlatEntry(position=len(entries), exercise=exercise, lesson_id=lesson.id))
    return FlatIndex(entries)


def _character_from_legacy(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "character",
        "glyph": item.get("char") or item.get("glyph"),
        "meaning": item.get("meaning") or "",
        "meaningAlt": item.get("meaningAlt"),
        "code": item.get("code") or "",
    }


def _parse_exercise(item: Any) -> Optional[Exercise]:
    if not isinstance(item, dict):
        return None
    kind = item.get("type")
    data = item.get("data", item)
    if not isinstance(data, dict):
        return None
    try:
        if kind == "character":
            return CharacterExercise.model_validate(_character_from_legacy(data))
        if kind == "sentence":
            return SentenceExercise.model_validate({**data, "type": "sentence"})
    except ValidationError as exc:
        logger.warning(f"Skipping malformed {kind} exercise: {exc.errors()}")
        return None
    logger.warning(f"Skipping exercise with unknown type {kind!r}")
    return None


def normalize_lesson(raw: Dict[str, Any]) -> Lesson:
    """Build a Lesson from either the exercises shape or the legacy characters shape."""
    exercises: List[Exercise] = []
    raw_exercises = raw.get("exercises")
    if isinstance(raw_exercises, list):
        for item in raw_exercises:
            exercise = _parse_exercise(item)
            if exercise is not None:
                exercises.append(exercise)
    elif isinstance(raw.get("characters"), list):
        for item in raw["characters"]:
            exercise = _parse_exercise({"type": "character", "data": item})
            if exercise is not None:
                exercises.append(exercise)
    return Lesson(
        id=str(raw.get("id", "")),
        title=raw.get("title") or "",
        title_alt=raw.get("titleAlt"),
        description=raw.get("description") or "",
        description_alt=raw.get("descriptionAlt"),
        exercises=exercises,
    )


def load_lessons(path: Optional[Path | str] = None) -> List[Lesson]:
    """Load the lesson catalog from disk once per path and return it."""
    catalog_path = Path(path) if path else _DEFAULT_CATALOG_PATH
    key = str(catalog_path)
    cached = _CATALOG_CACHE.get(key)
    if cached is not None:
        return cached
    with catalog_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    raw_lessons = payload.get("lessons", []) if isinstance(payload, dict) else payload
    lessons = [normalize_lesson(raw) for raw in raw_lessons if isinstance(raw, dict)]
    _CATALOG_CACHE[key] = lessons
    logger.info(f"Loaded {len(lessons)} lessons from {catalog_path}")
    return lessons


def clear_catalog_cache() -> None:
    _CATALOG_CACHE.clear()


def lesson_start_index(index: FlatIndex, lesson_id: str) -> Optional[int]:
    for entry in index:
        if entry.lesson_id == lesson_id:
            return entry.position
    return None


def lesson_bounds(index: FlatIndex, lesson_id: str) -> Optional[Tuple[int, int]]:
    """Return (start, end) positions of a lesson, end exclusive."""
    positions = [entry.position for entry in index if entry.lesson_id == lesson_id]
    if not positions:
        return None
    return positions[0], positions[-1] + 1


def first_unknown_index(index: FlatIndex, known_units: Iterable[str]) -> int:
    """Position of the first exercise with a unit not yet known, or len(index) when all are."""
    known = set(known_units)
    for entry in index:
        if not all(unit in known for unit in entry.exercise.units):
            return entry.position
    return len(index)
