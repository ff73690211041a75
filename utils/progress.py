from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from db import delete_blob, read_blob, write_blob
from models.progress import (
    AttemptRecord,
    LessonCompletionSummary,
    MasteryRecord,
    Profile,
    ProfileCollection,
    ProfileProgress,
    ProgressSummary,
)

STORAGE_KEY = "cangjie.profiles"
LEGACY_STORAGE_KEY = "cangjie.progress"
PASSING_ACCURACY = 0.85
HISTORY_LIMIT = 25
DEFAULT_PROFILE_NAME = "Learner"


class InvalidName(ValueError):
    """Profile name was empty after trimming."""


class ProfileNotFound(LookupError):
    pass


def new_profile(name: str, progress: Optional[ProfileProgress] = None) -> Profile:
    return Profile(id=uuid.uuid4().hex, name=name, progress=progress or ProfileProgress())


def default_collection(name: str = DEFAULT_PROFILE_NAME) -> ProfileCollection:
    profile = new_profile(name)
    return ProfileCollection(profiles=[profile], active_profile_id=profile.id)


def _valid_items(model, items: Any) -> List:
    if not isinstance(items, list):
        return []
    parsed = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            logger.warning(f"Dropping malformed legacy {model.__name__}: {item!r}")
    return parsed


def legacy_to_profile(old: Dict[str, Any], name: str = DEFAULT_PROFILE_NAME) -> Profile:
    """Wrap the single-profile progress shape into a Profile.

    The legacy blob holds ``attempts`` and ``summary`` and, in later versions,
    ``currentIndex``, ``knownCharacters`` and ``mastery``. Anything that does not
    validate is dropped rather than failing the migration.
    """
    try:
        summary = ProgressSummary.model_validate(old.get("summary") or {})
    except ValidationError:
        logger.warning("Legacy summary is malformed, starting from an empty summary")
        summary = ProgressSummary()
    mastery: Dict[str, MasteryRecord] = {}
    raw_mastery = old.get("mastery")
    if isinstance(raw_mastery, dict):
        for unit, raw in raw_mastery.items():
            try:
                mastery[unit] = MasteryRecord.model_validate(raw)
            except ValidationError:
                logger.warning(f"Dropping malformed legacy mastery record for {unit!r}")
    known = old.get("knownCharacters", old.get("knownUnits", []))
    cursor = old.get("currentIndex", old.get("cursor", 0))
    progress = ProfileProgress(
        cursor=cursor if isinstance(cursor, int) and cursor >= 0 else 0,
        known_units=[unit for unit in known if isinstance(unit, str)] if isinstance(known, list) else [],
        mastery=mastery,
        attempts=_valid_items(AttemptRecord, old.get("attempts")),
        summary=summary,
    )
    return new_profile(name, progress)


def _replace_profile(collection: ProfileCollection, profile: Profile) -> ProfileCollection:
    profiles = [profile if existing.id == profile.id else existing for existing in collection.profiles]
    return collection.model_copy(update={"profiles": profiles})


def _require(collection: ProfileCollection, profile_id: str) -> Profile:
    profile = collection.get(profile_id)
    if profile is None:
        raise ProfileNotFound(profile_id)
    return profile


def update_progress(
    collection: ProfileCollection,
    profile_id: str,
    change: Callable[[ProfileProgress], ProfileProgress],
) -> ProfileCollection:
    profile = _require(collection, profile_id)
    updated = profile.model_copy(update={"progress": change(profile.progress)})
    return _replace_profile(collection, updated)


def create_profile(collection: ProfileCollection, name: str) -> Tuple[ProfileCollection, Profile]:
    name = (name or "").strip()
    if not name:
        raise InvalidName("Profile name is required")
    profile = new_profile(name)
    updated = collection.model_copy(update={
        "profiles": [*collection.profiles, profile],
        "active_profile_id": profile.id,
    })
    return updated, profile


def rename_profile(collection: ProfileCollection, profile_id: str, name: str) -> ProfileCollection:
    name = (name or "").strip()
    if not name:
        raise InvalidName("Profile name is required")
    profile = _require(collection, profile_id)
    return _replace_profile(collection, profile.model_copy(update={"name": name}))


def delete_profile(
    collection: ProfileCollection, profile_id: str, default_name: str = DEFAULT_PROFILE_NAME
) -> ProfileCollection:
    _require(collection, profile_id)
    remaining = [profile for profile in collection.profiles if profile.id != profile_id]
    if not remaining:
        return default_collection(default_name)
    active_id = collection.active_profile_id
    if active_id == profile_id or collection.get(active_id) is None:
        active_id = remaining[0].id
    return ProfileCollection(profiles=remaining, active_profile_id=active_id)


def set_active(collection: ProfileCollection, profile_id: str) -> ProfileCollection:
    if collection.get(profile_id) is None:
        return collection
    return collection.model_copy(update={"active_profile_id": profile_id})


def _apply_attempt(
    progress: ProfileProgress,
    record: AttemptRecord,
    passing_accuracy: float,
    history_limit: int,
) -> ProfileProgress:
    summary = progress.summary
    previous = summary.lesson_completions.get(record.lesson_id) or LessonCompletionSummary()
    completion = LessonCompletionSummary(
        count=previous.count + 1,
        best_accuracy=max(previous.best_accuracy, record.accuracy),
        best_speed=max(previous.best_speed, record.speed),
    )
    if record.accuracy >= passing_accuracy:
        streak = summary.streak + 1
        longest = max(summary.longest_streak, streak)
    else:
        streak = 0
        longest = summary.longest_streak
    new_summary = ProgressSummary(
        total_sessions=summary.total_sessions + 1,
        streak=streak,
        longest_streak=longest,
        lesson_completions={**summary.lesson_completions, record.lesson_id: completion},
    )
    return progress.model_copy(update={
        "attempts": [record, *progress.attempts][:history_limit],
        "summary": new_summary,
    })


def record_attempt(
    collection: ProfileCollection,
    profile_id: str,
    record: AttemptRecord,
    passing_accuracy: float = PASSING_ACCURACY,
    history_limit: int = HISTORY_LIMIT,
) -> ProfileCollection:
    return update_progress(
        collection,
        profile_id,
        lambda progress: _apply_attempt(progress, record, passing_accuracy, history_limit),
    )


def advance_cursor(collection: ProfileCollection, profile_id: str) -> ProfileCollection:
    return update_progress(
        collection, profile_id, lambda p: p.model_copy(update={"cursor": p.cursor + 1})
    )


def set_cursor(collection: ProfileCollection, profile_id: str, index: int) -> ProfileCollection:
    return update_progress(
        collection, profile_id, lambda p: p.model_copy(update={"cursor": max(index, 0)})
    )


def reset_streak(collection: ProfileCollection, profile_id: str) -> ProfileCollection:
    def change(progress: ProfileProgress) -> ProfileProgress:
        if progress.summary.streak == 0:
            return progress
        summary = progress.summary.model_copy(update={"streak": 0})
        return progress.model_copy(update={"summary": summary})

    return update_progress(collection, profile_id, change)


class ProgressStore:
    """Owns the profile collection and persists it as one blob after every change.

    Mutations replace the whole collection under a single lock, so a submission's
    mastery, cursor and summary updates land together.
    """

    def __init__(
        self,
        passing_accuracy: float = PASSING_ACCURACY,
        history_limit: int = HISTORY_LIMIT,
        default_profile_name: str = DEFAULT_PROFILE_NAME,
    ):
        self.passing_accuracy = passing_accuracy
        self.history_limit = history_limit
        self.default_profile_name = default_profile_name
        self._lock = threading.RLock()
        self._collection: Optional[ProfileCollection] = None
        self._legacy_pending = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ProgressStore":
        progress_cfg = config.get("progress", {})
        return cls(
            passing_accuracy=progress_cfg.get("passing_accuracy", PASSING_ACCURACY),
            history_limit=progress_cfg.get("history_limit", HISTORY_LIMIT),
            default_profile_name=progress_cfg.get("default_profile_name", DEFAULT_PROFILE_NAME),
        )

    @property
    def collection(self) -> ProfileCollection:
        with self._lock:
            if self._collection is None:
                return self.load()
            return self._collection

    @property
    def active(self) -> Profile:
        return self.collection.active

    def _read_json(self, key: str) -> Optional[Any]:
        try:
            raw = read_blob(key)
        except sqlite3.Error as exc:
            logger.warning(f"Could not read {key}: {exc}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Stored value under {key} is not valid JSON, ignoring it")
            return None

    def _read_collection(self) -> Optional[ProfileCollection]:
        payload = self._read_json(STORAGE_KEY)
        if payload is None:
            return None
        try:
            return ProfileCollection.model_validate(payload)
        except ValidationError as exc:
            logger.warning(f"Stored profile collection is malformed ({exc.error_count()} errors), reinitializing")
            return None

    def _ensure_invariants(self, collection: Optional[ProfileCollection]) -> ProfileCollection:
        if collection is None or not collection.profiles:
            return default_collection(self.default_profile_name)
        if collection.get(collection.active_profile_id) is None:
            return collection.model_copy(update={"active_profile_id": collection.profiles[0].id})
        return collection

    def load(self) -> ProfileCollection:
        """Read the persisted collection, migrating the legacy single-profile blob once."""
        with self._lock:
            collection = self._read_collection()
            legacy = self._read_json(LEGACY_STORAGE_KEY)
            if isinstance(legacy, dict):
                profile = legacy_to_profile(legacy, self.default_profile_name)
                profiles = collection.profiles if collection else []
                collection = ProfileCollection(profiles=[*profiles, profile], active_profile_id=profile.id)
                self._legacy_pending = True
                if self.save(collection):
                    self._drop_legacy()
                logger.info(f"Migrated legacy progress into profile {profile.id}")
            collection = self._ensure_invariants(collection)
            self._collection = collection
            return collection

    def _drop_legacy(self) -> None:
        """Remove the legacy blob once the collection holding its profile is on disk."""
        try:
            delete_blob(LEGACY_STORAGE_KEY)
        except sqlite3.Error as exc:
            logger.warning(f"Could not remove legacy progress: {exc}")
            return
        self._legacy_pending = False

    def save(self, collection: ProfileCollection) -> bool:
        """Persist the whole collection. Failures are logged and reported as False."""
        try:
            write_blob(STORAGE_KEY, json.dumps(collection.to_wire(), ensure_ascii=False))
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Failed to save progress; keeping in-memory state")
            return False
        return True

    def mutate(self, change: Callable[[ProfileCollection], ProfileCollection]) -> ProfileCollection:
        with self._lock:
            updated = self._ensure_invariants(change(self.collection))
            self._collection = updated
            if self.save(updated) and self._legacy_pending:
                self._drop_legacy()
            return updated

    def create_profile(self, name: str) -> Profile:
        created: List[Profile] = []

        def change(collection: ProfileCollection) -> ProfileCollection:
            updated, profile = create_profile(collection, name)
            created.append(profile)
            return updated

        self.mutate(change)
        return created[0]

    def rename_profile(self, profile_id: str, name: str) -> Profile:
        return self.mutate(lambda c: rename_profile(c, profile_id, name)).get(profile_id)

    def delete_profile(self, profile_id: str) -> ProfileCollection:
        return self.mutate(lambda c: delete_profile(c, profile_id, self.default_profile_name))

    def set_active(self, profile_id: str) -> ProfileCollection:
        return self.mutate(lambda c: set_active(c, profile_id))

    def record_attempt(self, profile_id: str, record: AttemptRecord) -> Profile:
        updated = self.mutate(
            lambda c: record_attempt(c, profile_id, record, self.passing_accuracy, self.history_limit)
        )
        return updated.get(profile_id)

    def advance_cursor(self, profile_id: str) -> ProfileCollection:
        return self.mutate(lambda c: advance_cursor(c, profile_id))

    def set_cursor(self, profile_id: str, index: int) -> ProfileCollection:
        return self.mutate(lambda c: set_cursor(c, profile_id, index))

    def reset_streak(self, profile_id: str) -> ProfileCollection:
        return self.mutate(lambda c: reset_streak(c, profile_id))
