from fastapi import APIRouter, Depends, HTTPException

from config import get_config_value
from db.database import get_db
from routes.deps import get_evaluator
from utils.dictionary import describe
from utils.evaluator import SubmissionEvaluator
from models.exercise import CharacterExercise

router = APIRouter()

@router.get("/{char}")
async def lookup_char(char: str, conn = Depends(get_db), evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    """Dictionary detail for one character; unavailable data comes back as available=false."""
    if len(char) != 1:
        raise HTTPException(status_code=400, detail="Lookup expects a single character")
    code = ""
    for entry in evaluator.index:
        if isinstance(entry.exercise, CharacterExercise) and entry.exercise.glyph == char:
            code = entry.exercise.code
            break
    cache_hours = get_config_value("dictionary", "cache_hours", 24)
    return describe(conn, char, code=code, cache_hours=cache_hours)
