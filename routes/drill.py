from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from models.exercise import CharacterExercise
from models.progress import utcnow
from routes.deps import get_evaluator
from utils.cangjie import decompose_code
from utils.catalog import lesson_bounds
from utils.evaluator import SubmissionEvaluator

router = APIRouter()


def drill_state(evaluator: SubmissionEvaluator) -> dict:
    """Current exercise, its place in the lesson and the running session stats."""
    entry = evaluator.current()
    state = {
        "cursor": evaluator.cursor,
        "total": len(evaluator.index),
        "finished": evaluator.is_finished(),
        "exercise": None,
        "lessonId": None,
        "lessonPosition": None,
        "lessonLength": None,
        "session": evaluator.session.to_dict(utcnow()),
    }
    if entry is None:
        return state
    exercise = entry.exercise.to_wire()
    if isinstance(entry.exercise, CharacterExercise):
        exercise["decomposition"] = decompose_code(entry.exercise.code)
    start, end = lesson_bounds(evaluator.index, entry.lesson_id)
    state.update({
        "exercise": exercise,
        "lessonId": entry.lesson_id,
        "lessonPosition": entry.position - start + 1,
        "lessonLength": end - start,
    })
    return state


@router.get("")
async def get_drill(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    return drill_state(evaluator)


@router.post("/submit")
async def submit(
    text: str = Body("", embed=True, alias="input"),
    evaluator: SubmissionEvaluator = Depends(get_evaluator),
):
    """Evaluate typed input against the exercise at the cursor."""
    result = evaluator.submit(text)
    return {"result": result.to_dict(), "state": drill_state(evaluator)}


@router.post("/reveal")
async def reveal(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Open the detail view for the current exercise (counts as a hint)."""
    exercise = evaluator.reveal()
    if exercise is None:
        raise HTTPException(status_code=404, detail="No exercise at cursor")
    payload = exercise.to_wire()
    if isinstance(exercise, CharacterExercise):
        payload["decomposition"] = decompose_code(exercise.code)
        record = evaluator.progress.mastery.get(exercise.glyph)
        payload["mastery"] = record.to_wire() if record else None
    return {"exercise": payload, "state": drill_state(evaluator)}


@router.post("/jump")
async def jump(
    lesson_id: Optional[str] = Body(None, embed=True, alias="lessonId"),
    evaluator: SubmissionEvaluator = Depends(get_evaluator),
):
    """Move the cursor to the first exercise of a lesson."""
    if not lesson_id or evaluator.jump_to_lesson(lesson_id) is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return drill_state(evaluator)


@router.post("/reset")
async def reset(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    evaluator.reset_session()
    return drill_state(evaluator)


@router.get("/review")
async def review(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Due-for-review and learned-today counts for the active profile."""
    return evaluator.review_summary()
