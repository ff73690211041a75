# Routes package __init__.py - re-exports routers for main.py convenience
from .lessons import router as lessons_router
from .progress import router as progress_router
from .profiles import router as profiles_router
from .drill import router as drill_router
from .dictionary import router as dictionary_router

__all__ = ['lessons_router', 'progress_router', 'profiles_router', 'drill_router', 'dictionary_router']
