from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models.progress import AttemptRecord
from routes.deps import get_evaluator
from utils.evaluator import SubmissionEvaluator

router = APIRouter()

REQUIRED_MESSAGE = "lessonId, accuracy, and speed are required."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def progress_payload(evaluator: SubmissionEvaluator) -> Dict[str, Any]:
    profile = evaluator.store.active
    progress = profile.progress.to_wire()
    return {
        "profileId": profile.id,
        "attempts": progress["attempts"],
        "summary": progress["summary"],
        "cursor": progress["cursor"],
        "knownUnits": progress["knownUnits"],
    }


@router.get("")
async def get_progress(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Attempt history and summary for the active profile."""
    return progress_payload(evaluator)


@router.post("")
async def post_progress(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    evaluator: SubmissionEvaluator = Depends(get_evaluator),
):
    """Record a completed lesson attempt for the active profile."""
    payload = payload or {}
    lesson_id = payload.get("lessonId")
    accuracy = payload.get("accuracy")
    speed = payload.get("speed")
    if not lesson_id or not _is_number(accuracy) or not _is_number(speed):
        return JSONResponse({"message": REQUIRED_MESSAGE}, status_code=400)
    attempts = payload.get("attempts")
    try:
        record = AttemptRecord(
            lesson_id=str(lesson_id),
            accuracy=accuracy,
            speed=speed,
            attempt_count=attempts if isinstance(attempts, int) and not isinstance(attempts, bool) else None,
            completed_at=payload.get("completedAt") or datetime.now(timezone.utc),
        )
    except ValidationError:
        return JSONResponse({"message": REQUIRED_MESSAGE}, status_code=400)
    evaluator.store.record_attempt(evaluator.profile_id, record)
    return progress_payload(evaluator)
