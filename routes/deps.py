import threading
from typing import Optional

from config import load_config
from db.database import init_db
from utils.catalog import load_lessons
from utils.evaluator import SubmissionEvaluator
from utils.progress import ProgressStore

_EVALUATOR: Optional[SubmissionEvaluator] = None
_EVALUATOR_LOCK = threading.Lock()


def build_evaluator() -> SubmissionEvaluator:
    config = load_config()
    init_db()
    lessons = load_lessons(config["catalog"]["path"])
    store = ProgressStore.from_config(config)
    return SubmissionEvaluator(lessons, store)


def get_evaluator() -> SubmissionEvaluator:
    """FastAPI dependency returning the process-wide evaluator, built on first use."""
    global _EVALUATOR
    with _EVALUATOR_LOCK:
        if _EVALUATOR is None:
            _EVALUATOR = build_evaluator()
        return _EVALUATOR


def reset_evaluator() -> None:
    global _EVALUATOR
    with _EVALUATOR_LOCK:
        _EVALUATOR = None
