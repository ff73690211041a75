from fastapi import APIRouter, Depends

from routes.deps import get_evaluator
from utils.evaluator import SubmissionEvaluator

router = APIRouter()

@router.get("")
async def list_lessons(evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Lesson catalog in catalog order."""
    return {"lessons": [lesson.to_wire() for lesson in evaluator.lessons]}
