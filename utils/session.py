from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

MIN_ELAPSED_MINUTES = 1 / 60


@dataclass(frozen=True)
class SessionStats:
    correct: int = 0
    incorrect: int = 0
    started_at: Optional[datetime] = None

    @property
    def attempts(self) -> int:
        return self.correct + self.incorrect


class SessionTracker:
    """Correct/incorrect tally and timing for one uninterrupted drill run."""

    def __init__(self) -> None:
        self.stats = SessionStats()

    def reset(self) -> None:
        self.stats = SessionStats()

    def record_attempt(self, is_correct: bool, now: datetime) -> SessionStats:
        started_at = self.stats.started_at or now
        self.stats = SessionStats(
            correct=self.stats.correct + (1 if is_correct else 0),
            incorrect=self.stats.incorrect + (0 if is_correct else 1),
            started_at=started_at,
        )
        return self.stats

    def accuracy(self) -> float:
        if not self.stats.attempts:
            return 0.0
        return self.stats.correct / self.stats.attempts

    def speed(self, now: datetime) -> float:
        """Correct entries per minute, with a one-second floor on elapsed time."""
        if self.stats.started_at is None:
            return 0.0
        minutes = max((now - self.stats.started_at).total_seconds() / 60, MIN_ELAPSED_MINUTES)
        return self.stats.correct / minutes

    def to_dict(self, now: datetime) -> dict:
        return {
            "correct": self.stats.correct,
            "incorrect": self.stats.incorrect,
            "startedAt": self.stats.started_at.isoformat() if self.stats.started_at else None,
            "accuracy": round(self.accuracy(), 3),
            "speed": round(self.speed(now), 2),
        }
