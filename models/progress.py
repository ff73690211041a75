from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from .base import CamelModel

MAX_LEVEL = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MasteryRecord(CamelModel):
    level: int = Field(default=0, ge=0, le=MAX_LEVEL)
    first_learned_at: datetime
    last_practiced_at: datetime
    next_review_at: datetime


class AttemptRecord(CamelModel):
    lesson_id: str
    accuracy: float = Field(ge=0, le=1)
    speed: float = Field(ge=0)
    attempt_count: Optional[int] = Field(default=None, alias="attempts")
    completed_at: datetime = Field(default_factory=utcnow)

    @field_validator("accuracy")
    @classmethod
    def round_accuracy(cls, v: float) -> float:
        return round(v, 3)

    @field_validator("speed")
    @classmethod
    def round_speed(cls, v: float) -> float:
        return round(v, 2)


class LessonCompletionSummary(CamelModel):
    count: int = 0
    best_accuracy: float = 0.0
    best_speed: float = 0.0


class ProgressSummary(CamelModel):
    total_sessions: int = 0
    streak: int = 0
    longest_streak: int = 0
    lesson_completions: Dict[str, LessonCompletionSummary] = Field(default_factory=dict)


class ProfileProgress(CamelModel):
    cursor: int = 0
    known_units: List[str] = Field(default_factory=list)
    mastery: Dict[str, MasteryRecord] = Field(default_factory=dict)
    attempts: List[AttemptRecord] = Field(default_factory=list)
    summary: ProgressSummary = Field(default_factory=ProgressSummary)

    @field_validator("known_units")
    @classmethod
    def dedupe_units(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class Profile(CamelModel):
    id: str
    name: str
    progress: ProfileProgress = Field(default_factory=ProfileProgress)


class ProfileCollection(CamelModel):
    profiles: List[Profile] = Field(default_factory=list)
    active_profile_id: str

    def get(self, profile_id: str) -> Optional[Profile]:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    @property
    def active(self) -> Profile:
        profile = self.get(self.active_profile_id)
        return profile if profile is not None else self.profiles[0]
