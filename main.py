import argparse
import uvicorn
from fastapi import FastAPI, Request, Depends
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse, JSONResponse
from contextlib import asynccontextmanager
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from pathlib import Path

from db.database import init_db
from config import load_config
from routes import lessons, progress, profiles, drill, dictionary  # Import routers
from routes.deps import get_evaluator
from routes.drill import drill_state
from utils.evaluator import SubmissionEvaluator
from utils.formatting import format_number, format_percent

base_dir = Path(__file__).parent

templates = Jinja2Templates(directory=str(base_dir / "templates"))
templates.env.filters["percent"] = format_percent
templates.env.filters["number"] = format_number

# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    load_config()  # Ensures config exists
    init_db()
    logger.info("Cangjie tutor ready")
    yield

app = FastAPI(title="Cangjie Tutor", description="Cangjie input drills with spaced review", lifespan=lifespan)

# Include routers
app.include_router(lessons.router, prefix="/api/lessons", tags=["lessons"])
app.include_router(progress.router, prefix="/api/progress", tags=["progress"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
app.include_router(drill.router, prefix="/api/drill", tags=["drill"])
app.include_router(dictionary.router, prefix="/api/dictionary", tags=["dictionary"])

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and request.url.path.startswith("/api/") and exc.detail == "Not Found":
        return JSONResponse({"message": "Not found"}, status_code=404)
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code)

@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unexpected server error on {request.url.path}")
    return JSONResponse({"message": "Internal server error"}, status_code=500)

# Home page - current drill, lessons and progress summary
@app.get("/", response_class=HTMLResponse)
async def home(request: Request, evaluator: SubmissionEvaluator = Depends(get_evaluator)):
    profile = evaluator.store.active
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "profile": profile,
            "profiles": evaluator.store.collection.profiles,
            "lessons": evaluator.lessons,
            "drill": drill_state(evaluator),
            "review": evaluator.review_summary(),
        },
    )

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cangjie Tutor")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    args = parser.parse_args()
    config = load_config()
    if args.init:
        init_db()
        print("DB initialized and config copied to ~/.cangjie-tutor/")
        exit(0)
    uvicorn.run(
        "main:app",
        host=config["server"]["host"],
        port=config["server"]["port"],
        reload=args.dev,
        log_level="info",
    )
